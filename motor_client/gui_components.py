"""
GUI components and widgets for the motor controller panel.
Handles the user interface layout; the controller logic lives in motor_gui.
"""

import tkinter as tk
from tkinter import ttk, messagebox, filedialog
import matplotlib
matplotlib.use('TkAgg')
from matplotlib.backends.backend_tkagg import FigureCanvasTkAgg
from matplotlib.figure import Figure
from typing import Optional, Sequence

from motor_client.config import *
from motor_client.data_models import Sample
from motor_client.visualization import project_chart, render_geometry


class ChartPlot:
    """Position/setpoint chart drawn from projected canvas geometry."""

    def __init__(self, parent: ttk.Frame):
        self.fig = Figure(figsize=PLOT_FIGURE_SIZE, dpi=PLOT_DPI, facecolor='white')
        self.fig.subplots_adjust(left=0.06, right=0.99, top=0.98, bottom=0.08)
        self.ax = self.fig.add_subplot(111)
        self.canvas = FigureCanvasTkAgg(self.fig, master=parent)
        self.canvas.get_tk_widget().pack(fill=tk.BOTH, expand=True)

    def canvas_size(self) -> tuple:
        widget = self.canvas.get_tk_widget()
        return widget.winfo_width(), widget.winfo_height()

    def update_plot(self, samples: Sequence[Sample]):
        """Redraw the chart from a snapshot; does nothing for an empty one."""
        if not samples:
            return
        width, height = self.canvas_size()
        geometry = project_chart(samples, width, height, max_points=MAX_PLOT_POINTS)
        render_geometry(self.ax, geometry)
        self.canvas.draw_idle()

    def clear_plot(self):
        self.ax.cla()
        self.canvas.draw_idle()


class MainWindow:
    """Main application window with all GUI components."""

    def __init__(self, root: tk.Tk):
        self.root = root
        root.title("Motor Controller Panel")
        root.geometry(WINDOW_GEOMETRY)

        # Tk variables shared with the controller
        self.port_var = tk.StringVar()
        self.baud_var = tk.IntVar(value=DEFAULT_BAUD_RATE)
        self.sp_var = tk.StringVar(value="0")
        self.hold_var = tk.BooleanVar(value=False)
        self.step_var = tk.StringVar(value=str(STEP_DEFAULT))
        self.kp_var = tk.StringVar()
        self.ki_var = tk.StringVar()
        self.kd_var = tk.StringVar()
        self.mode_var = tk.StringVar(value=MODES[0])
        self.amp_var = tk.StringVar(value=f"{SINE_DEFAULT_AMPLITUDE:g}")
        self.freq_var = tk.StringVar(value=f"{SINE_DEFAULT_FREQUENCY:g}")

        self.port_combo: Optional[ttk.Combobox] = None
        self.pos_label: Optional[ttk.Label] = None
        self.sp_live_label: Optional[ttk.Label] = None
        self.mode_label: Optional[ttk.Label] = None
        self.status_label: Optional[ttk.Label] = None
        self.log_list: Optional[tk.Listbox] = None
        self.btn_sine: Optional[ttk.Button] = None
        self.plot: Optional[ChartPlot] = None

    def build_ui(self, callbacks: dict):
        """
        Build the complete user interface.

        Args:
            callbacks: Dictionary of callback functions for UI events
        """
        self._build_toolbar(callbacks)
        self._build_controls(callbacks)
        self._build_readouts()
        self._build_status_bar()
        self._build_main_content()

    def _build_toolbar(self, callbacks: dict):
        """Build the top toolbar with connection controls."""
        toolbar = ttk.Frame(self.root, padding=4)
        toolbar.pack(side=tk.TOP, fill=tk.X)

        ttk.Label(toolbar, text="Port:").pack(side=tk.LEFT)
        self.port_combo = ttk.Combobox(toolbar, width=15, textvariable=self.port_var,
                                       state="readonly")
        self.port_combo.pack(side=tk.LEFT, padx=4)

        ttk.Button(toolbar, text="Refresh", command=callbacks['refresh_ports']).pack(side=tk.LEFT, padx=4)

        ttk.Label(toolbar, text="Baud:").pack(side=tk.LEFT, padx=(12, 0))
        ttk.Combobox(toolbar, width=8, textvariable=self.baud_var, values=BAUD_RATES,
                     state="readonly").pack(side=tk.LEFT, padx=4)

        ttk.Button(toolbar, text="Connect", command=callbacks['connect']).pack(side=tk.LEFT, padx=4)
        ttk.Button(toolbar, text="Disconnect", command=callbacks['disconnect']).pack(side=tk.LEFT, padx=4)
        ttk.Button(toolbar, text="Clear Data", command=callbacks['clear_data']).pack(side=tk.LEFT, padx=(12, 4))
        ttk.Button(toolbar, text="Export", command=callbacks['export_data']).pack(side=tk.LEFT, padx=4)

    def _build_controls(self, callbacks: dict):
        """Build setpoint, PID, mode and sine test controls."""
        ctrl = ttk.LabelFrame(self.root, text="Control", padding=6)
        ctrl.pack(side=tk.TOP, fill=tk.X, padx=4, pady=(2, 4))

        # Setpoint row
        ttk.Label(ctrl, text="SP:").grid(row=0, column=0, sticky=tk.E)
        ttk.Entry(ctrl, textvariable=self.sp_var, width=10).grid(row=0, column=1, padx=4)
        ttk.Checkbutton(ctrl, text="Hold", variable=self.hold_var).grid(row=0, column=2)
        ttk.Button(ctrl, text="Set SP", command=callbacks['set_setpoint']).grid(row=0, column=3, padx=4)
        ttk.Label(ctrl, text="Step:").grid(row=0, column=4, sticky=tk.E)
        ttk.Entry(ctrl, textvariable=self.step_var, width=8).grid(row=0, column=5, padx=4)
        ttk.Button(ctrl, text="Step", command=callbacks['step']).grid(row=0, column=6, padx=4)

        # PID row
        for col, (name, var) in enumerate((("Kp", self.kp_var), ("Ki", self.ki_var), ("Kd", self.kd_var))):
            ttk.Label(ctrl, text=f"{name}:").grid(row=1, column=col * 2, sticky=tk.E)
            ttk.Entry(ctrl, textvariable=var, width=10).grid(row=1, column=col * 2 + 1, padx=4, pady=2)
        ttk.Button(ctrl, text="Set PID", command=callbacks['set_pid']).grid(row=1, column=6, padx=4)

        # Mode and control row
        ttk.Label(ctrl, text="Mode:").grid(row=2, column=0, sticky=tk.E)
        ttk.Combobox(ctrl, textvariable=self.mode_var, values=MODES, width=8).grid(row=2, column=1, padx=4)
        ttk.Button(ctrl, text="Set Mode", command=callbacks['set_mode']).grid(row=2, column=2, padx=4)
        ttk.Button(ctrl, text="Enable", command=callbacks['enable']).grid(row=2, column=3, padx=4)
        ttk.Button(ctrl, text="Disable", command=callbacks['disable']).grid(row=2, column=4, padx=4)
        ttk.Button(ctrl, text="Reset Enc", command=callbacks['reset_encoder']).grid(row=2, column=5, padx=4)

        # Sine test row
        ttk.Label(ctrl, text="Amp:").grid(row=3, column=0, sticky=tk.E)
        ttk.Entry(ctrl, textvariable=self.amp_var, width=10).grid(row=3, column=1, padx=4, pady=2)
        ttk.Label(ctrl, text="Freq (Hz):").grid(row=3, column=2, sticky=tk.E)
        ttk.Entry(ctrl, textvariable=self.freq_var, width=8).grid(row=3, column=3, padx=4)
        self.btn_sine = ttk.Button(ctrl, text="Start Sine", command=callbacks['toggle_sine'])
        self.btn_sine.grid(row=3, column=4, padx=4)

    def _build_readouts(self):
        box = ttk.LabelFrame(self.root, text="Live", padding=6)
        box.pack(side=tk.TOP, fill=tk.X, padx=4, pady=(0, 4))
        font = ("Consolas", 14, "bold")
        self.pos_label = ttk.Label(box, text="Pos: -", font=font)
        self.pos_label.pack(side=tk.LEFT, padx=8)
        self.sp_live_label = ttk.Label(box, text="SP: -", font=font)
        self.sp_live_label.pack(side=tk.LEFT, padx=8)
        self.mode_label = ttk.Label(box, text="MODE: -", font=font)
        self.mode_label.pack(side=tk.LEFT, padx=8)

    def _build_main_content(self):
        """Build the plot and the serial log side by side."""
        main = ttk.Frame(self.root)
        main.pack(fill=tk.BOTH, expand=True)

        plot_frame = ttk.Frame(main)
        plot_frame.pack(side=tk.LEFT, fill=tk.BOTH, expand=True)
        self.plot = ChartPlot(plot_frame)

        log_frame = ttk.Frame(main)
        log_frame.pack(side=tk.LEFT, fill=tk.Y)
        self.log_list = tk.Listbox(log_frame, width=40, font=("Consolas", 9))
        self.log_list.pack(side=tk.LEFT, fill=tk.Y)
        vsb = ttk.Scrollbar(log_frame, orient="vertical", command=self.log_list.yview)
        self.log_list.configure(yscrollcommand=vsb.set)
        vsb.pack(side=tk.RIGHT, fill=tk.Y)

    def _build_status_bar(self):
        """Build the bottom status bar."""
        status = ttk.Frame(self.root, padding=4)
        status.pack(side=tk.BOTTOM, fill=tk.X)

        self.status_label = ttk.Label(status, text="Disconnected")
        self.status_label.pack(side=tk.LEFT)

    # UI Update Methods
    def update_port_list(self, ports: list[str]):
        """Update the COM port dropdown list."""
        self.port_combo['values'] = ports or ["(No COM found)"]
        if self.port_var.get() not in ports:
            self.port_var.set(ports[0] if ports else "")

    def update_status(self, status_text: str):
        self.status_label.config(text=status_text)

    def update_position(self, position: int, setpoint: int):
        self.pos_label.config(text=f"Pos: {position}")
        self.sp_live_label.config(text=f"SP: {setpoint}")

    def update_mode(self, mode: str):
        self.mode_label.config(text=f"MODE: {mode}")
        for item in MODES:
            if item.lower() == mode.lower():
                self.mode_var.set(item)
                break

    def update_gains(self, kp: float, ki: float, kd: float):
        self.kp_var.set(repr(kp))
        self.ki_var.set(repr(ki))
        self.kd_var.set(repr(kd))

    def update_sine_state(self, running: bool):
        self.btn_sine.config(text="Stop Sine" if running else "Start Sine")

    def append_log(self, text: str):
        """Insert a log line at the top, dropping the oldest past LOG_MAX_LINES."""
        self.log_list.insert(0, text)
        if self.log_list.size() > LOG_MAX_LINES:
            self.log_list.delete(LOG_MAX_LINES, tk.END)


class DialogHelper:
    """Helper class for showing dialogs and file operations."""

    @staticmethod
    def show_warning(title: str, message: str):
        messagebox.showwarning(title, message)

    @staticmethod
    def show_error(title: str, message: str):
        messagebox.showerror(title, message)

    @staticmethod
    def show_info(title: str, message: str):
        messagebox.showinfo(title, message)

    @staticmethod
    def ask_yes_no(title: str, message: str) -> bool:
        return messagebox.askyesno(title, message)

    @staticmethod
    def ask_save_filename(default_ext: str = DEFAULT_EXPORT_EXTENSION,
                          filetypes: list = None) -> str:
        """Show a file save dialog."""
        if filetypes is None:
            filetypes = [("Excel", "*.xlsx"), ("CSV", "*.csv")]
        return filedialog.asksaveasfilename(
            defaultextension=default_ext,
            filetypes=filetypes
        )
