"""
Object detection desktop app.

Shows a still image, a video file or the live webcam in an OpenCV window
with detected objects boxed and labeled.

Usage:
    python src/main.py --config config/config.yaml --image path/to/photo.jpg

Arguments:
    --config: Path to configuration file
    --image / --video: File to open on startup
    --webcam: Start in webcam mode
    --export-dir: Where `s` saves exported PNGs (overrides export.output_dir)

Keys:
    i / v / w   switch to image / video / webcam mode
    space       play or pause the video
    s           export the current composite as PNG
    r           reset history and the canvas
    1 .. 5      re-render a history entry
    q / Esc     quit
"""

import argparse
import asyncio
import logging
import sys
from typing import Optional, Set

import cv2
import numpy as np

from errors import DetectionError
from models.config import AppConfig
from models.media import MediaFile
from models.session import DetectionMode
from ops.logging import setup_logging
from rendering.export import save_export
from runtime.config import load_config, validate_config
from runtime.context import DetectionContext

MODE_KEYS = {
    ord("i"): DetectionMode.IMAGE,
    ord("v"): DetectionMode.VIDEO,
    ord("w"): DetectionMode.WEBCAM,
}
HISTORY_KEYS = {ord(str(n)): n - 1 for n in range(1, 6)}
QUIT_KEYS = (ord("q"), 27)

STATUS_COLOR = (255, 255, 255)
ERROR_COLOR = (0, 0, 255)


class DetectionApp:
    """OpenCV window host around a DetectionContext."""

    def __init__(self, ctx: DetectionContext, export_dir: str):
        self.ctx = ctx
        self.export_dir = export_dir
        self.window_name = ctx.config.display.window_name
        self._tasks: Set[asyncio.Task] = set()
        self._canvas_size = tuple(ctx.config.camera.resolution)

    def spawn(self, coro, what: str) -> None:
        """Run an action without blocking the display loop."""
        task = asyncio.get_running_loop().create_task(self._guard(coro, what))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _guard(self, coro, what: str) -> None:
        try:
            await coro
        except DetectionError as e:
            logging.error(f"{what} failed: {e}")
        except (IndexError, ValueError, OSError) as e:
            logging.error(f"{what} failed: {e}")
            self.ctx.last_error = str(e)

    def compose(self) -> np.ndarray:
        current = self.ctx.surface.current
        if current is not None:
            frame = current.image.copy()
        else:
            width, height = self._canvas_size
            frame = np.zeros((height, width, 3), dtype=np.uint8)

        status = self.ctx.status()
        line = f"Mode: {status['mode']}"
        if status["pending_mode"]:
            line += f" (starting {status['pending_mode']}...)"
        if status["running"]:
            line += f" | FPS: {status['fps']:.0f} | Frames: {status['frames_processed']}"
        if self.ctx.is_busy:
            line += " | Detecting..."
        cv2.putText(frame, line, (10, 30), cv2.FONT_HERSHEY_SIMPLEX, 0.7, STATUS_COLOR, 2)

        y = 60
        if status["mode"] == DetectionMode.IMAGE.value and not status["running"]:
            summary = self.ctx.latest_summary()
            if summary:
                cv2.putText(
                    frame,
                    f"Detected Objects ({len(summary)})",
                    (10, y),
                    cv2.FONT_HERSHEY_SIMPLEX,
                    0.6,
                    STATUS_COLOR,
                    2,
                )
                y += 25

        if status["error"]:
            cv2.putText(frame, status["error"], (10, y), cv2.FONT_HERSHEY_SIMPLEX, 0.6, ERROR_COLOR, 2)
        return frame

    def handle_key(self, key: int) -> bool:
        """Dispatch a key press. Returns False when the app should quit."""
        if key in QUIT_KEYS:
            return False
        if key in MODE_KEYS:
            mode = MODE_KEYS[key]
            self.spawn(self.ctx.switch_mode(mode), f"Switch to {mode.value}")
        elif key == ord(" "):
            self.spawn(self.ctx.toggle_playback(), "Play/pause")
        elif key == ord("s"):
            exported = self.ctx.export()
            if exported is None:
                logging.info("Nothing to export yet")
            else:
                save_export(exported, self.export_dir)
        elif key == ord("r"):
            self.ctx.reset()
            logging.info("Results cleared")
        elif key in HISTORY_KEYS:
            index = HISTORY_KEYS[key]
            if index < len(self.ctx.history):
                self.spawn(self.ctx.select_history(index), f"History entry {index + 1}")
        return True

    async def run(self, interval: float) -> None:
        cv2.namedWindow(self.window_name, cv2.WINDOW_NORMAL)
        try:
            while True:
                cv2.imshow(self.window_name, self.compose())
                key = cv2.waitKey(1) & 0xFF
                if key != 0xFF and not self.handle_key(key):
                    break
                await asyncio.sleep(interval)
        finally:
            for task in list(self._tasks):
                task.cancel()
            cv2.destroyAllWindows()


async def run_app(config: AppConfig, args: argparse.Namespace) -> int:
    ctx = DetectionContext(config)
    if not await ctx.init():
        logging.error(f"Model failed to load: {ctx.model_error}")
        print(ctx.last_error, file=sys.stderr)
        return 1

    app = DetectionApp(ctx, args.export_dir or config.export.output_dir)
    try:
        initial: Optional[str] = args.image or args.video
        if initial:
            app.spawn(ctx.select_file(MediaFile.from_path(initial)), f"Open {initial}")
        elif args.webcam:
            app.spawn(ctx.switch_mode(DetectionMode.WEBCAM), "Start webcam")

        await app.run(1.0 / config.display.refresh_hz)
    finally:
        await ctx.teardown()
    return 0


def main():
    """Main application function."""
    parser = argparse.ArgumentParser(description="Object Detection")
    parser.add_argument("--config", type=str, default="config/config.yaml",
                        help="Path to configuration file")
    source = parser.add_mutually_exclusive_group()
    source.add_argument("--image", type=str, help="Image file to detect on startup")
    source.add_argument("--video", type=str, help="Video file to play on startup")
    source.add_argument("--webcam", action="store_true", help="Start in webcam mode")
    parser.add_argument("--export-dir", type=str, default=None,
                        help="Directory for exported PNGs")
    args = parser.parse_args()

    try:
        raw = load_config(args.config)
    except Exception as e:
        logging.error(f"Failed to load configuration: {e}")
        sys.exit(1)

    is_valid, error_msg = validate_config(raw)
    if not is_valid:
        logging.error(f"Configuration validation failed: {error_msg}")
        sys.exit(1)

    config = AppConfig.from_dict(raw)
    setup_logging(config.log_path, config.log_level)
    logging.info(f"Starting Object Detection (backend={config.detector.backend}, model={config.detector.model})")

    try:
        code = asyncio.run(run_app(config, args))
    except KeyboardInterrupt:
        logging.info("Interrupted by user")
        code = 0
    logging.info("Object Detection stopped")
    sys.exit(code)


if __name__ == "__main__":
    main()
