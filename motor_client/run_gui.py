#!/usr/bin/env python3
"""
Launcher for the motor controller panel.
Checks that the GUI dependencies are available, sets up logging and starts
the application, optionally against the simulated controller.
"""
import argparse
import importlib.util
import logging
import sys

from motor_client.config import LOG_FORMAT

REQUIRED = ['serial', 'pandas', 'matplotlib', 'tkinter']


def check_requirements() -> list[str]:
    """Return the required packages that cannot be imported."""
    return [name for name in REQUIRED if importlib.util.find_spec(name) is None]


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Motor controller serial panel")
    parser.add_argument("--simulate", action="store_true",
                        help="use a simulated controller instead of a serial port")
    parser.add_argument("-v", "--verbose", action="store_true",
                        help="log every line sent and received")
    return parser.parse_args(argv)


def main(argv=None):
    """Main launcher function."""
    args = parse_args(argv)
    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.INFO,
                        format=LOG_FORMAT)
    log = logging.getLogger("motor_client")

    missing = check_requirements()
    if missing:
        log.error("Missing required packages: %s", ", ".join(missing))
        log.error("Please install with: pip install -e .")
        sys.exit(1)

    import tkinter as tk
    from motor_client.motor_gui import MotorGUI
    from motor_client.session import DeviceSession

    if args.simulate:
        from motor_client.serial_test_simulator import SimulatedTransport
        session = DeviceSession(transport_factory=SimulatedTransport)
        port_lister = lambda: ["SIM"]
    else:
        from motor_client.serial_handler import get_available_ports
        session = DeviceSession()
        port_lister = get_available_ports

    log.info("Starting motor controller panel%s", " (simulated)" if args.simulate else "")
    root = tk.Tk()
    gui = MotorGUI(root, session, port_lister=port_lister)
    root.protocol("WM_DELETE_WINDOW", gui.on_close)
    root.mainloop()


if __name__ == "__main__":
    main()
