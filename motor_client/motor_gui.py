"""
Main GUI application for the motor controller panel.
Wires the tkinter widgets to a DeviceSession.
"""
import logging
import queue
import tkinter as tk
from typing import Optional

from motor_client.commands import parse_float_text, parse_gains_text, parse_setpoint_text
from motor_client.config import (PLOT_REFRESH_MS, PORT_REFRESH_INTERVAL_MS, SINE_DEFAULT_AMPLITUDE,
                                 SINE_DEFAULT_FREQUENCY, SINE_TICK_MS, STEP_DEFAULT)
from motor_client.data_export import DataExporter
from motor_client.data_models import (CommandSent, ConnectionChanged, GainsUpdated, LineReceived,
                                      ModeUpdated, SampleReceived)
from motor_client.errors import MotorClientError, NotConnectedError
from motor_client.gui_components import DialogHelper, MainWindow
from motor_client.serial_handler import get_available_ports
from motor_client.session import DeviceSession
from motor_client.waveform import SineWaveGenerator

logger = logging.getLogger(__name__)

EVENT_POLL_MS = 20


class MotorGUI:
    """Controller for the panel: user actions in, session events out."""

    def __init__(self, root: tk.Tk, session: Optional[DeviceSession] = None,
                 port_lister=get_available_ports):
        self.root = root
        self.session = session or DeviceSession()
        self.port_lister = port_lister
        self.window = MainWindow(root)
        self.sine = SineWaveGenerator()
        self.sine_job = None

        # Session events arrive on the reader thread; the Tk loop drains them
        self.events: "queue.Queue" = queue.Queue()
        self.session.subscribe(self.events.put)

        self.window.build_ui({
            'refresh_ports': self.refresh_ports,
            'connect': self.connect,
            'disconnect': self.disconnect,
            'clear_data': self.clear_data,
            'export_data': self.export_data,
            'set_setpoint': self.send_setpoint,
            'step': self.do_step,
            'set_pid': self.send_pid,
            'set_mode': self.send_mode,
            'enable': lambda: self._run_command(self.session.enable),
            'disable': lambda: self._run_command(self.session.disable),
            'reset_encoder': lambda: self._run_command(self.session.reset_encoder),
            'toggle_sine': self.toggle_sine,
        })

        self.refresh_ports()
        self.root.after(EVENT_POLL_MS, self._poll_events)
        self.root.after(PLOT_REFRESH_MS, self._schedule_redraw)
        self.root.after(PORT_REFRESH_INTERVAL_MS, self._schedule_port_refresh)

    # Connection logic
    def refresh_ports(self):
        try:
            ports = self.port_lister()
        except OSError as e:
            DialogHelper.show_error("Ports", f"Cannot list COM ports:\n{e}")
            return
        logger.debug("Found %d port(s): %s", len(ports), ", ".join(ports))
        self.window.update_port_list(ports)

    def _schedule_port_refresh(self):
        if not self.session.is_connected:
            self.refresh_ports()
        self.root.after(PORT_REFRESH_INTERVAL_MS, self._schedule_port_refresh)

    def connect(self):
        port = self.window.port_var.get()
        if not port or port.startswith("("):
            DialogHelper.show_warning("Port", "No valid COM port selected")
            return
        try:
            self.session.connect(port, int(self.window.baud_var.get()))
        except MotorClientError as e:
            DialogHelper.show_error("Connect", f"Cannot connect:\n{e}")

    def disconnect(self):
        # The sine test is left running, as with the hardware panel
        self.session.disconnect()

    # Actions
    def _run_command(self, action, *args) -> bool:
        try:
            return action(*args)
        except NotConnectedError:
            DialogHelper.show_warning("Serial", "Serial port is not connected")
        except MotorClientError as e:
            DialogHelper.show_warning("Input", str(e))
        return False

    def send_setpoint(self):
        try:
            sp = parse_setpoint_text(self.window.sp_var.get())
        except MotorClientError as e:
            DialogHelper.show_warning("Setpoint", str(e))
            return
        self._run_command(self.session.send_setpoint, sp, self.window.hold_var.get())

    def do_step(self):
        try:
            sp = parse_setpoint_text(self.window.sp_var.get())
        except MotorClientError:
            sp = 0
        try:
            step = parse_setpoint_text(self.window.step_var.get())
        except MotorClientError:
            step = STEP_DEFAULT
        try:
            new_sp = self.session.step_setpoint(sp, step, self.window.hold_var.get())
        except NotConnectedError:
            DialogHelper.show_warning("Serial", "Serial port is not connected")
            return
        self.window.sp_var.set(str(new_sp))

    def send_pid(self):
        try:
            kp, ki, kd = parse_gains_text(self.window.kp_var.get(),
                                          self.window.ki_var.get(),
                                          self.window.kd_var.get())
        except MotorClientError as e:
            DialogHelper.show_warning("PID", str(e))
            return
        self._run_command(self.session.send_pid, kp, ki, kd)

    def send_mode(self):
        self._run_command(self.session.send_mode, self.window.mode_var.get() or "PID")

    def clear_data(self):
        if not DialogHelper.ask_yes_no("Clear", "Clear all captured data?"):
            return
        self.session.clear_history()
        self.window.plot.clear_plot()
        self.window.update_status("Data cleared")

    def export_data(self):
        samples = self.session.snapshot()
        if not samples:
            DialogHelper.show_info("Export", "No data to export.")
            return
        path = DialogHelper.ask_save_filename()
        if not path:
            return
        if DataExporter.export(samples, path):
            DialogHelper.show_info("Export", f"Exported {len(samples)} samples to {path}")
        else:
            DialogHelper.show_error("Export", f"Failed to export to {path}")

    # Sine test
    def toggle_sine(self):
        if not self.sine.running:
            if not self.session.is_connected:
                DialogHelper.show_warning("Serial", "Serial port is not connected")
                return
            try:
                base = parse_setpoint_text(self.window.sp_var.get())
            except MotorClientError:
                base = 0
            self.sine.start(base)
            self.sine_job = self.root.after(SINE_TICK_MS, self._sine_tick)
            self.window.append_log("[SINE] started")
        else:
            self.sine.stop()
            if self.sine_job is not None:
                self.root.after_cancel(self.sine_job)
                self.sine_job = None
            self.window.append_log("[SINE] stopped")
        self.window.update_sine_state(self.sine.running)

    def _sine_tick(self):
        amp = parse_float_text(self.window.amp_var.get(), SINE_DEFAULT_AMPLITUDE)
        freq = parse_float_text(self.window.freq_var.get(), SINE_DEFAULT_FREQUENCY)
        sp = self.sine.tick(amp, freq)
        self.window.sp_var.set(str(sp))
        try:
            self.session.send_setpoint(sp)
        except MotorClientError as e:
            logger.warning("Sine setpoint not sent: %s", e)
        self.sine_job = self.root.after(SINE_TICK_MS, self._sine_tick)

    # Periodic tasks
    def _poll_events(self):
        while True:
            try:
                event = self.events.get_nowait()
            except queue.Empty:
                break
            self._handle_event(event)
        self.root.after(EVENT_POLL_MS, self._poll_events)

    def _handle_event(self, event):
        if isinstance(event, LineReceived):
            self.window.append_log(f"> {event.line}")
        elif isinstance(event, CommandSent):
            self.window.append_log(f"< {event.command}")
        elif isinstance(event, SampleReceived):
            self.window.update_position(event.sample.position, event.sample.setpoint)
        elif isinstance(event, GainsUpdated):
            g = event.gains
            self.window.update_gains(g.kp, g.ki, g.kd)
        elif isinstance(event, ModeUpdated):
            self.window.update_mode(event.mode)
        elif isinstance(event, ConnectionChanged):
            if event.connected:
                self.window.update_status(f"Connected: {event.port} @ {self.window.baud_var.get()}")
            else:
                self.window.update_status("Disconnected")

    def _schedule_redraw(self):
        self.window.plot.update_plot(self.session.snapshot())
        self.root.after(PLOT_REFRESH_MS, self._schedule_redraw)

    def on_close(self):
        if self.sine.running:
            self.toggle_sine()
        self.session.disconnect()
        self.root.destroy()


def main(session: Optional[DeviceSession] = None):
    root = tk.Tk()
    gui = MotorGUI(root, session)
    root.protocol("WM_DELETE_WINDOW", gui.on_close)
    root.mainloop()


if __name__ == '__main__':
    main()
