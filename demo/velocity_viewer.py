"""
Live viewer for the optical-flow ground velocity estimator.
Shows tracked features and the median forward/lateral velocity.
"""

import sys
from pathlib import Path

# Add src to path BEFORE any local imports
_src_path = str(Path(__file__).parent.parent / "src")
if _src_path not in sys.path:
    sys.path.insert(0, _src_path)

import argparse
import logging
import time

import cv2

import config
from camera.capture import FrameCapture
from motion.velocity import TrackingMethod, VelocityTracker

logger = logging.getLogger("velocity_viewer")


class VelocityViewer:
    """
    Real-time display of the velocity tracker.

    Displays:
    - Frame with old -> new feature arrows
    - Median forward and lateral velocity
    - Tracked feature count and processing time
    """

    COLORS = {
        'motion': (255, 255, 0),      # Cyan
        'text': (255, 255, 255),      # White
        'warn': (0, 165, 255),        # Orange
    }

    def __init__(self, source, height_above_ground: float,
                 focal_length: float = config.FOCAL_LENGTH,
                 sensor_width: float = config.SENSOR_WIDTH,
                 sensor_height: float = config.SENSOR_HEIGHT):
        self.capture = FrameCapture(source)
        self.height_above_ground = height_above_ground
        self.tracker = VelocityTracker(
            TrackingMethod.LUCAS_KANADE, 1.0 / config.TARGET_FPS,
            focal_length, sensor_width, sensor_height
        )

    def run(self):
        """Main visualization loop."""
        if not self.capture.open():
            return

        logger.info("Source: %s at %.1f fps, height %.2f m",
                    self.capture.source, self.capture.fps, self.height_above_ground)
        logger.info("Press 'q' to quit, 'r' to reset the tracker")

        try:
            while True:
                item = self.capture.read()
                if item is None:
                    break
                gray, delta_t = item

                start_time = time.perf_counter()
                self.tracker.set_time_step(delta_t)
                result = self.tracker.compute_velocity(gray, self.height_above_ground)
                processing_time = (time.perf_counter() - start_time) * 1000

                vis_frame = cv2.cvtColor(gray, cv2.COLOR_GRAY2BGR)
                for (ox, oy), (nx, ny) in zip(result.old_features, result.new_features):
                    cv2.arrowedLine(vis_frame, (int(ox), int(oy)), (int(nx), int(ny)),
                                    self.COLORS['motion'], 1, tipLength=0.3)
                self._draw_metrics(vis_frame, result, processing_time)

                cv2.imshow("Ground Velocity", vis_frame)

                key = cv2.waitKey(1) & 0xFF
                if key == ord('q'):
                    break
                elif key == ord('r'):
                    self.tracker.reset()
                    logger.info("Tracker reset")
        finally:
            self.capture.close()
            cv2.destroyAllWindows()

    def _draw_metrics(self, frame, result, processing_time):
        y = 25

        def draw_text(text, color=self.COLORS['text']):
            nonlocal y
            cv2.putText(frame, text, (10, y), cv2.FONT_HERSHEY_SIMPLEX, 0.5, color, 1)
            y += 22

        median = result.median()
        if median is None:
            draw_text("No tracked features", self.COLORS['warn'])
        else:
            draw_text(f"Forward: {median[0]:+.2f} m/s")
            draw_text(f"Lateral: {median[1]:+.2f} m/s")
        draw_text(f"Features: {result.feature_count}")
        draw_text(f"Processing: {processing_time:.1f}ms")


def _source(value: str):
    return int(value) if value.isdigit() else value


def main():
    parser = argparse.ArgumentParser(
        description="Optical-flow ground velocity viewer"
    )
    parser.add_argument(
        "--source", "-s", type=_source, default=0,
        help="Camera device index or video file path (default: 0)"
    )
    parser.add_argument(
        "--height", type=float, required=True,
        help="Camera height above ground in meters"
    )
    parser.add_argument("--focal-length", type=float, default=config.FOCAL_LENGTH)
    parser.add_argument("--sensor-width", type=float, default=config.SENSOR_WIDTH)
    parser.add_argument("--sensor-height", type=float, default=config.SENSOR_HEIGHT)
    args = parser.parse_args()

    logging.basicConfig(level=logging.INFO,
                        format="%(asctime)s %(levelname)s %(name)s: %(message)s")

    viewer = VelocityViewer(args.source, args.height, args.focal_length,
                            args.sensor_width, args.sensor_height)
    viewer.run()


if __name__ == "__main__":
    main()
