"""
Watch mode for testdoc - regenerate documentation when test files change.
"""
import time
from pathlib import Path
from datetime import datetime
from typing import Callable
from watchdog.observers import Observer
from watchdog.events import FileSystemEventHandler, FileSystemEvent

from testdoc.core.aggregator import is_test_file
from testdoc.support.config import TestDocConfig


class DebounceHandler(FileSystemEventHandler):
    """File system event handler with debouncing."""

    def __init__(self, callback, debounce_seconds: float = 0.5):
        """
        Initialize handler.

        Args:
            callback: Function to call when a test file changes (receives file path)
            debounce_seconds: Minimum time between processing events for the same file
        """
        super().__init__()
        self.callback = callback
        self.debounce_seconds = debounce_seconds
        self.last_processed = {}

    def on_modified(self, event: FileSystemEvent):
        """Handle file modification events."""
        if event.is_directory:
            return
        self._process_event(event.src_path)

    def on_created(self, event: FileSystemEvent):
        """Handle file creation events."""
        if event.is_directory:
            return
        self._process_event(event.src_path)

    def _process_event(self, file_path: str):
        """Process a file event with debouncing."""
        path = Path(file_path)
        if not is_test_file(path):
            return

        now = time.time()
        last_time = self.last_processed.get(file_path, 0)

        # Debounce: skip if processed recently
        if now - last_time < self.debounce_seconds:
            return

        self.last_processed[file_path] = now
        self.callback(path)


def watch_directory(root: Path, config: TestDocConfig, regenerate: Callable[[], None]):
    """
    Watch a directory tree and regenerate documentation on test file changes.

    Args:
        root: Directory to watch recursively
        config: testdoc configuration (excluded directories are ignored)
        regenerate: Called with no arguments after each relevant change
    """
    def on_file_change(file_path: Path):
        """Handle file change event."""
        timestamp = datetime.now().strftime("%H:%M:%S")

        try:
            rel_path = file_path.relative_to(root)
        except ValueError:
            rel_path = file_path

        # Only directories below the root are excluded, as in iter_test_files
        if any(excluded in rel_path.parent.parts for excluded in config.exclude_dirs):
            return

        print(f"[{timestamp}] Detected change: {rel_path} → regenerating...")

        try:
            regenerate()
            print(f"[{timestamp}] ✓ Documentation updated")
        except Exception as e:
            print(f"[{timestamp}] ✗ Error regenerating documentation: {e}")

    handler = DebounceHandler(on_file_change, debounce_seconds=0.5)

    observer = Observer()
    observer.schedule(handler, str(root), recursive=True)

    print(f"👀 Watching {root} for changes...")
    print("Press Ctrl+C to stop watching.")
    print()

    try:
        observer.start()
        while True:
            time.sleep(1)
    except KeyboardInterrupt:
        print("\n\nStopping watch mode...")
        observer.stop()

    observer.join()
    print("Watch mode stopped.")
