"""
braillechord - Main entry point and system tray daemon.
"""

import argparse
import sys
import os
import logging
import threading
from pathlib import Path
from typing import Optional

# Handle imports for when pystray/PIL aren't available
try:
    import pystray
    from PIL import Image, ImageDraw
    TRAY_AVAILABLE = True
except ImportError:
    TRAY_AVAILABLE = False

from .config import load_config, get_config_path, Config
from .keyboard import BrailleKeyboard, Chord
from .mapping import MappingTable, load_mapping, default_mapping_path
from .patterns import dots_for_pattern

# Configure logging
logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s.%(msecs)03d [%(levelname)s] %(name)s: %(message)s',
    datefmt='%H:%M:%S'
)
log = logging.getLogger(__name__)

# Dot number -> (column, row) inside a Braille cell
CELL_POSITIONS = {
    1: (0, 0), 2: (0, 1), 3: (0, 2),
    4: (1, 0), 5: (1, 1), 6: (1, 2),
}


def create_cell_icon(dots=frozenset(), size: int = 64) -> 'Image.Image':
    """Draw a 2x3 Braille cell with the given dots filled in."""
    img = Image.new('RGBA', (size, size), (0, 0, 0, 0))
    draw = ImageDraw.Draw(img)

    bg_color = (33, 150, 243, 255) if dots else (158, 158, 158, 255)
    draw.rounded_rectangle([2, 2, size - 2, size - 2], radius=10, fill=bg_color)

    radius = size // 10
    for dot, (column, row) in CELL_POSITIONS.items():
        cx = size * (column + 1) // 3
        cy = size * (row + 1) // 4
        box = [cx - radius, cy - radius, cx + radius, cy + radius]
        if dot in dots:
            draw.ellipse(box, fill=(255, 255, 255, 255))
        else:
            draw.ellipse(box, outline=(255, 255, 255, 160), width=2)

    return img


def format_table(table: MappingTable) -> str:
    """One 'pattern dots char' line per table entry, sorted by pattern."""
    lines = []
    for pattern in sorted(table):
        dots = ''.join(str(d) for d in sorted(dots_for_pattern(pattern)))
        lines.append(f"{pattern}  {dots:<6}  {table[pattern]}")
    return '\n'.join(lines)


class BrailleChordApp:
    """Main application controller."""

    def __init__(
        self,
        config_path: Optional[Path] = None,
        table_path: Optional[str] = None,
        log_level: Optional[str] = None
    ):
        self.config_path = config_path or get_config_path()
        self.table_path = table_path
        self.log_level = log_level
        self.config: Optional[Config] = None
        self.table: Optional[MappingTable] = None
        self.keyboard: Optional[BrailleKeyboard] = None
        self.host = None
        self.tray: Optional['pystray.Icon'] = None
        self._running = False
        self._stopped = threading.Event()

    def load_config(self):
        """Load or create configuration, then the mapping table."""
        log.info("Loading configuration...")
        self.config = load_config(self.config_path)
        logging.getLogger().setLevel(self.log_level or self.config.log_level)

        table_path = self.table_path or self.config.mapping_file or default_mapping_path()
        self.table = load_mapping(table_path)
        if not self.table:
            log.warning("No Braille patterns loaded; only delete, space, newline and blank cell will work")

        layout = self.config.layout
        repeat = self.config.delete_repeat
        log.info(f"Zone grid at ({layout.origin_x}, {layout.origin_y}), "
                 f"size={layout.dot_size} spacing={layout.dot_spacing}")
        log.info(f"Delete repeat: delay={repeat.initial_delay_ms}ms interval={repeat.interval_ms}ms")
        log.info(f"Controls: {self.config.controls}")

        if self.keyboard:
            self.keyboard.close()

        self.keyboard = BrailleKeyboard(
            self.table,
            layout=layout.to_layout(),
            initial_delay=repeat.initial_delay_ms / 1000.0,
            repeat_interval=repeat.interval_ms / 1000.0
        )
        self.keyboard.add_chord_listener(self._on_chord)

    def _on_chord(self, chord: Chord):
        """Called after every finished gesture."""
        self._update_tray_icon(chord)

    def _update_tray_icon(self, chord: Optional[Chord] = None):
        """Show the last chord in the tray icon."""
        if not TRAY_AVAILABLE or not self.tray:
            return

        try:
            self.tray.icon = create_cell_icon(chord.dots if chord else frozenset())
        except Exception as e:
            log.error(f"Error updating tray icon: {e}")

    def _create_menu(self):
        """Create the system tray menu."""
        if not TRAY_AVAILABLE:
            return None

        def get_status(item):
            chord = self.keyboard.last_chord if self.keyboard else None
            if chord:
                return f"Last chord: {chord.pattern} {chord.char or '(unmapped)'}"
            return f"Patterns loaded: {len(self.table) if self.table else 0}"

        def open_config(icon, item):
            log.info(f"Opening config: {self.config_path}")
            if sys.platform == 'win32':
                os.startfile(self.config_path)
            elif sys.platform == 'darwin':
                os.system(f'open "{self.config_path}"')
            else:
                os.system(f'xdg-open "{self.config_path}"')

        def reload_config(icon, item):
            log.info("Reloading configuration...")
            self._stop_host()
            self.load_config()
            self._start_host()
            log.info("Configuration reloaded")

        def quit_app(icon, item):
            log.info("Quit requested from tray menu")
            self.stop()

        return pystray.Menu(
            pystray.MenuItem(get_status, None, enabled=False),
            pystray.Menu.SEPARATOR,
            pystray.MenuItem("Open Config", open_config),
            pystray.MenuItem("Reload Config", reload_config),
            pystray.Menu.SEPARATOR,
            pystray.MenuItem("Quit", quit_app)
        )

    def _start_host(self):
        # pynput needs a display; import only when actually hosting
        from .host import DesktopHost, PynputTextTarget

        self.host = DesktopHost(self.keyboard, PynputTextTarget(), self.config.controls)
        self.host.start()

    def _stop_host(self):
        if self.host:
            self.host.stop()
            self.host = None

    def start(self):
        """Start the daemon."""
        self._running = True

        log.info("="*60)
        log.info("braillechord starting...")
        log.info("="*60)

        self.load_config()
        self._start_host()

        log.info(f"Config file: {self.config_path}")
        print(f"\nbraillechord started!")
        print(f"Config: {self.config_path}")
        print(f"Patterns: {len(self.table)}")
        print(f"Controls: {self.config.controls}")
        print("\nDrag across the zone grid with the left mouse button to enter a cell.")
        print("Press Ctrl+Shift+Q to quit.\n")

        if TRAY_AVAILABLE:
            log.info("Starting system tray...")
            self.tray = pystray.Icon(
                'braillechord',
                create_cell_icon(),
                'braillechord',
                menu=self._create_menu()
            )
            self.tray.run()  # This blocks until quit
        else:
            log.warning("System tray not available, running in console mode")
            print("Press Ctrl+C to quit")
            try:
                while self._running:
                    self._stopped.wait(1)
            except KeyboardInterrupt:
                pass

        self.stop()

    def stop(self):
        """Stop the daemon."""
        if self._stopped.is_set():
            return
        log.info("Stopping braillechord...")
        self._running = False
        self._stopped.set()

        self._stop_host()
        if self.keyboard:
            self.keyboard.close()

        if self.tray:
            self.tray.stop()

        log.info("braillechord stopped")


def parse_args(argv=None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog='braillechord',
        description='Chorded Braille input: drag across eight zones to type a cell.'
    )
    parser.add_argument('--config', type=Path, default=None,
                        help=f'configuration file (default: {get_config_path()})')
    parser.add_argument('--table', default=None,
                        help='character,pattern CSV table overriding the configured one')
    parser.add_argument('--list-table', action='store_true',
                        help='print the loaded Braille table and exit')
    parser.add_argument('--log-level', default=None,
                        choices=['DEBUG', 'INFO', 'WARNING', 'ERROR'],
                        help='override the configured log level')
    return parser.parse_args(argv)


def main(argv=None):
    """Main entry point."""
    import signal

    args = parse_args(argv)

    if args.list_table:
        if args.table:
            table_path = args.table
        else:
            table_path = load_config(args.config or get_config_path()).mapping_file or default_mapping_path()
        print(format_table(load_mapping(table_path)))
        return

    app = BrailleChordApp(config_path=args.config, table_path=args.table, log_level=args.log_level)

    def signal_handler(signum, frame):
        log.info(f"Received signal {signum}, shutting down...")
        app.stop()
        sys.exit(0)

    # Register signal handlers
    signal.signal(signal.SIGINT, signal_handler)
    signal.signal(signal.SIGTERM, signal_handler)

    # Also register a global hotkey to quit (Ctrl+Shift+Q)
    try:
        import keyboard as kb
        def quit_hotkey():
            log.info("Quit hotkey pressed (Ctrl+Shift+Q)")
            app.stop()
        kb.add_hotkey('ctrl+shift+q', quit_hotkey, suppress=False)
        log.info("Registered quit hotkey: Ctrl+Shift+Q")
    except Exception as e:
        log.warning(f"Could not register quit hotkey: {e}")

    try:
        app.start()
    except KeyboardInterrupt:
        app.stop()
    except Exception as e:
        log.exception(f"Fatal error: {e}")
        sys.exit(1)


if __name__ == '__main__':
    main()
