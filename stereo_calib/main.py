"""
Main entry point for the Stereo Calibration Toolkit

Calibrates a rig from folders of left/right chessboard images, or rectifies a
single pair with a saved calibration.
"""

import argparse
import logging
import sys
from pathlib import Path

import cv2

from stereo_calib.calibration.calibration_validator import CalibrationValidator
from stereo_calib.exceptions import CalibrationError
from stereo_calib.stereo_camera import StereoCamera
from stereo_calib.utils.config_manager import ConfigManager

IMAGE_EXTENSIONS = ('.png', '.jpg', '.jpeg', '.bmp', '.tif', '.tiff')


def _list_images(directory: Path):
    return sorted(p for p in directory.iterdir() if p.suffix.lower() in IMAGE_EXTENSIONS)


def run_calibration(args, config: ConfigManager) -> int:
    """Calibrate from paired image folders and save the parameter file."""
    left_files = _list_images(Path(args.left_dir))
    right_files = _list_images(Path(args.right_dir))

    if not left_files or len(left_files) != len(right_files):
        print(f"Expected matching image pairs, found {len(left_files)} left and {len(right_files)} right")
        return 1

    read_flag = cv2.IMREAD_GRAYSCALE if args.grayscale else cv2.IMREAD_COLOR
    first = cv2.imread(str(left_files[0]), read_flag)
    if first is None:
        print(f"Could not read image: {left_files[0]}")
        return 1
    image_size = (first.shape[1], first.shape[0])

    nx = args.nx or config.get('chessboard.nx', 7)
    ny = args.ny or config.get('chessboard.ny', 5)
    square_size = args.square_size or config.get('chessboard.square_size', 2.5)

    camera = StereoCamera(config)
    camera.start(nx, ny, square_size, image_size)

    for left_path, right_path in zip(left_files, right_files):
        left = cv2.imread(str(left_path), read_flag)
        right = cv2.imread(str(right_path), read_flag)
        if left is None or right is None:
            print(f"Skipping unreadable pair: {left_path.name}, {right_path.name}")
            continue
        found = camera.compute(left, right, args.grayscale)
        print(f"{left_path.name} / {right_path.name}: {'ok' if found else 'no pattern'}")

    print(f"Usable pairs: {camera.success_count}/{len(left_files)}")

    try:
        result = camera.end()
        camera.save(args.output)
    except CalibrationError as e:
        print(f"Calibration failed: {e}")
        return 1

    validator = CalibrationValidator()
    validation = validator.validate_result(result)
    print(validator.generate_calibration_report(
        result, validation, camera.accumulator.calibrator.last_rms_error
    ))
    print(f"Calibration saved to: {args.output}")

    return 0


def run_rectification(args, config: ConfigManager) -> int:
    """Rectify one stereo pair with a saved calibration."""
    left = cv2.imread(args.left, cv2.IMREAD_GRAYSCALE)
    right = cv2.imread(args.right, cv2.IMREAD_GRAYSCALE)
    if left is None or right is None:
        print("Could not read input images")
        return 1

    output_path = Path(args.output_dir)
    output_path.mkdir(parents=True, exist_ok=True)

    camera = StereoCamera(config)
    try:
        camera.load(args.calibration)
        if args.disparity:
            rect_left, rect_right, disparity = camera.transform(left, right)
            cv2.imwrite(str(output_path / "disparity.png"), disparity)
        else:
            rect_left, rect_right = camera.rectify(left, right)
    except CalibrationError as e:
        print(f"Rectification failed: {e}")
        return 1

    cv2.imwrite(str(output_path / "left_rectified.png"), rect_left)
    cv2.imwrite(str(output_path / "right_rectified.png"), rect_right)
    print(f"Rectified images written to: {output_path}")

    return 0


def main(argv=None):
    """Main entry point for the stereo calibration toolkit."""
    parser = argparse.ArgumentParser(
        description="Stereo camera calibration and rectification"
    )

    parser.add_argument(
        "--config",
        type=str,
        help="Path to configuration file"
    )

    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable debug logging"
    )

    subparsers = parser.add_subparsers(dest="command", required=True)

    calibrate = subparsers.add_parser("calibrate", help="Calibrate from chessboard image pairs")
    calibrate.add_argument("--left-dir", required=True, help="Directory of camera 1 images")
    calibrate.add_argument("--right-dir", required=True, help="Directory of camera 2 images")
    calibrate.add_argument("--output", default="calibration.yml", help="Output parameter file")
    calibrate.add_argument("--nx", type=int, help="Inner corners along a row")
    calibrate.add_argument("--ny", type=int, help="Inner corners along a column")
    calibrate.add_argument("--square-size", type=float, help="Chessboard square size")
    calibrate.add_argument("--grayscale", action="store_true", help="Load images as grayscale")
    calibrate.add_argument("--display", action="store_true", help="Show detected corners")

    rectify = subparsers.add_parser("rectify", help="Rectify a stereo pair")
    rectify.add_argument("--calibration", required=True, help="Saved parameter file")
    rectify.add_argument("--left", required=True, help="Camera 1 image")
    rectify.add_argument("--right", required=True, help="Camera 2 image")
    rectify.add_argument("--output-dir", default="output", help="Output directory")
    rectify.add_argument("--disparity", action="store_true", help="Also write a disparity preview")

    args = parser.parse_args(argv)

    # Load configuration
    try:
        config = ConfigManager(args.config)
    except (FileNotFoundError, ValueError) as e:
        print(f"Error loading configuration: {e}")
        return 1

    level = "DEBUG" if args.verbose else config.get('logging.level', 'INFO')
    logging.basicConfig(level=level, format="%(asctime)s %(name)s %(levelname)s: %(message)s")

    if getattr(args, 'display', False):
        config.set('display.enabled', True)

    if args.command == "calibrate":
        return run_calibration(args, config)
    return run_rectification(args, config)


if __name__ == "__main__":
    sys.exit(main())
