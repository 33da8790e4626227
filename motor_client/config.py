# Configuration constants for the motor controller client

# Serial communication settings
DEFAULT_BAUD_RATE = 115200  # Default serial port baud rate
BAUD_RATES = (9600, 19200, 38400, 57600, 115200, 230400, 460800)
SERIAL_TIMEOUT = 2.0        # Read/write timeout in seconds
READ_CHUNK_SIZE = 256       # Max bytes pulled from the port per read
MAX_LINE_LENGTH = 1024      # Longest line kept while waiting for its terminator

# Sample history
MAX_SAMPLES = 500           # ~50 s of history at 10 Hz telemetry

# Chart settings
PLOT_REFRESH_MS = 100       # Chart redraw interval in milliseconds
MIN_CANVAS_SIZE = 10        # Smallest canvas width/height we project onto
Y_TICKS = 5                 # Horizontal gridline divisions (value axis)
X_TICKS = 6                 # Vertical gridline divisions (time axis)
MAX_PLOT_POINTS = 4000      # Points drawn before decimating
PLOT_FIGURE_SIZE = (8, 4)   # Plot figure size (width, height)
PLOT_DPI = 100              # Plot resolution

# Setpoint sine test
SINE_TICK_MS = 50           # Waveform update interval in milliseconds
SINE_DEFAULT_AMPLITUDE = 100.0
SINE_DEFAULT_FREQUENCY = 0.5  # Hz
STEP_DEFAULT = 100          # Setpoint step size in ticks

# Control modes offered by the panel
MODES = ("PID", "FZPID")

# GUI
LOG_MAX_LINES = 300         # Lines kept in the serial log list
PORT_REFRESH_INTERVAL_MS = 2000  # How often to refresh COM port list
WINDOW_GEOMETRY = "1100x720"

# Export settings
DEFAULT_EXPORT_EXTENSION = ".xlsx"
EXCEL_SHEET_NAME = "Data"

# Logging
LOG_FORMAT = "%(asctime)s %(levelname)-7s %(name)s: %(message)s"
