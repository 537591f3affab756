"""
Command-line interface for the PostureSense server.

Provides:
- Control server (serve)
- Camera probing
- Single-image pose inference
- Headless tracking
"""

import sys
import time
import argparse
import logging
import json
import threading
from dataclasses import replace
from typing import Optional, List
from enum import Enum

from backends.onnxrt.config import Acceleration
from core import (
    CAPTURE_CONFIG,
    LOG_FORMAT,
    LOG_FILE,
    LOG_LEVEL,
    SERVER_CONFIG,
    PoseSenseError,
    ResourceModelPathResolver,
)


class ExitCode(int, Enum):
    """CLI exit codes"""
    SUCCESS = 0
    ERROR = 1
    INVALID_ARGS = 2
    INTERRUPTED = 130


class OutputFormat(str, Enum):
    """Output format options"""
    TEXT = "text"
    JSON = "json"


def setup_logging(verbose: int) -> None:
    """
    Setup logging based on verbosity level.

    Args:
        verbose: Verbosity count (0=WARNING, 1=INFO, 2+=DEBUG)
    """
    if verbose == 0:
        level = logging.WARNING
    elif verbose == 1:
        level = logging.INFO
    else:
        level = logging.DEBUG

    logging.basicConfig(
        level=level,
        format='%(levelname)s: %(message)s'
    )


def _resolve_model_path(model: Optional[str]) -> str:
    if model:
        return model
    return str(ResourceModelPathResolver().resolve())


def _build_pose_engine(acceleration: str):
    """Pose engine whose session prefers the requested accelerator"""
    from backends.onnxrt import InferenceEngine
    from pipelines import PoseEngine

    config = InferenceEngine.config_for_acceleration(Acceleration(acceleration))
    return PoseEngine(inference_engine=InferenceEngine(config=config))


def cmd_serve(args) -> int:
    """
    Run the HTTP/WebSocket control server.

    Args:
        args: Parsed command arguments

    Returns:
        Exit code
    """
    import uvicorn
    from api import controller_manager
    from api.main import app

    # Server logs lifecycle at LOG_LEVEL regardless of -v
    level = logging.DEBUG if args.verbose >= 2 else getattr(logging, LOG_LEVEL.upper(), logging.INFO)
    logging.basicConfig(
        filename=args.log_file,
        level=level,
        format=LOG_FORMAT,
        force=True
    )
    controller_manager.configure(pose_engine=_build_pose_engine(args.acceleration))
    uvicorn.run(
        app,
        host=args.host,
        port=args.port,
        log_level="info"
    )
    return ExitCode.SUCCESS.value


def cmd_probe(args) -> int:
    """
    Open the camera, read one frame, release it.

    Args:
        args: Parsed command arguments

    Returns:
        Exit code
    """
    from capture.camera import OpenCVCamera, probe_camera

    config = replace(CAPTURE_CONFIG, camera_index=args.camera_index, request_yuyv=args.yuyv)
    try:
        result = probe_camera(OpenCVCamera(config))
    except PoseSenseError as e:
        print(f"Error: {e}", file=sys.stderr)
        return ExitCode.ERROR.value

    if args.format == OutputFormat.JSON.value:
        print(json.dumps(result, indent=2))
    else:
        print("=== Camera Probe ===\n")
        print(f"Camera: {result['camera']}")
        print(f"Frame: {result['width']}x{result['height']} ({result['bytes']} bytes)")
        print(f"Pixel format: {result['format'] or 'unrecognized'}")

    return ExitCode.SUCCESS.value


def cmd_infer(args) -> int:
    """
    Run the pose pipeline on one image file.

    Args:
        args: Parsed command arguments

    Returns:
        Exit code
    """
    from PIL import Image
    from analysis import calculate_posture_metrics

    try:
        with Image.open(args.image) as img:
            rgb = img.convert("RGB")
            width, height = rgb.size
            data = rgb.tobytes()
    except OSError as e:
        print(f"Error: cannot read image '{args.image}': {e}", file=sys.stderr)
        return ExitCode.INVALID_ARGS.value

    try:
        engine = _build_pose_engine(args.acceleration)
        engine.load_model(_resolve_model_path(args.model))
        pose = engine.infer(data, width, height)
    except PoseSenseError as e:
        print(f"Error: {e}", file=sys.stderr)
        return ExitCode.ERROR.value

    metrics = calculate_posture_metrics(pose)

    if args.format == OutputFormat.JSON.value:
        output = {
            "image": args.image,
            "width": width,
            "height": height,
            "landmarks": [lm.to_dict() for lm in pose],
            "metrics": metrics.to_dict(),
        }
        print(json.dumps(output, indent=2))
    else:
        print(f"=== Pose: {args.image} ({width}x{height}) ===\n")
        for index, lm in enumerate(pose):
            print(f"  {index:2d}: x={lm.x:.3f} y={lm.y:.3f} z={lm.z:.3f} vis={lm.visibility:.2f}")
        print()
        print(f"Posture: {metrics.total} (neck {metrics.neck}, shoulders {metrics.shoulders}, spine {metrics.spine})")
        print("Good posture" if metrics.is_good else "Needs correction")

    return ExitCode.SUCCESS.value


def cmd_track(args) -> int:
    """
    Track from the camera and print events until timeout or Ctrl-C.

    Args:
        args: Parsed command arguments

    Returns:
        Exit code
    """
    from analysis import calculate_posture_metrics
    from api.routes.stream import serialize_event
    from capture import CaptureController, EventBroadcaster, opencv_camera_factory
    from core.pose_types import PoseUpdate

    config = replace(CAPTURE_CONFIG, camera_index=args.camera_index, request_yuyv=args.yuyv)
    broadcaster = EventBroadcaster()
    engine = _build_pose_engine(args.acceleration)
    controller = CaptureController(
        pose_engine=engine,
        camera_factory=opencv_camera_factory(config),
        sink=broadcaster,
        config=config,
    )

    print_lock = threading.Lock()

    def on_event(event) -> None:
        with print_lock:
            if args.format == OutputFormat.JSON.value:
                print(json.dumps(serialize_event(event, include_metrics=True)), flush=True)
            elif isinstance(event, PoseUpdate):
                metrics = calculate_posture_metrics(event.landmarks)
                print(
                    f"#{event.frame_number} {len(event.landmarks)} landmarks "
                    f"score={metrics.total} {'good' if metrics.is_good else 'bad'}",
                    flush=True,
                )
            else:
                print(f"[{event.kind.value}] {event.message}", flush=True)

    broadcaster.add_callback(on_event)

    try:
        engine.load_model(_resolve_model_path(args.model))
        controller.start_tracking()
    except PoseSenseError as e:
        print(f"Error: {e}", file=sys.stderr)
        controller.kill_camera()
        return ExitCode.ERROR.value

    exit_code = ExitCode.SUCCESS
    deadline = time.monotonic() + args.seconds if args.seconds > 0 else None
    try:
        while controller.is_tracking():
            if deadline is not None and time.monotonic() >= deadline:
                break
            time.sleep(0.1)
    except KeyboardInterrupt:
        exit_code = ExitCode.INTERRUPTED
    finally:
        controller.shutdown()

    stats = controller.stats()
    print(
        f"Tracked {stats.iterations} iterations: "
        f"{stats.frames_emitted} poses, {stats.frames_dropped} dropped",
        file=sys.stderr,
    )
    return exit_code.value


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="PostureSense Server CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  %(prog)s serve                       # Run the control server
  %(prog)s probe --camera-index 1      # Check a camera
  %(prog)s infer photo.jpg             # Pose for one image
  %(prog)s --format json track --seconds 10  # Headless tracking
        """
    )

    # Global options
    parser.add_argument(
        '-v', '--verbose',
        action='count',
        default=0,
        help='Increase verbosity (can be repeated: -v, -vv, -vvv)'
    )
    parser.add_argument(
        '--format',
        choices=[f.value for f in OutputFormat],
        default=OutputFormat.TEXT.value,
        help='Output format'
    )

    # Subcommands
    subparsers = parser.add_subparsers(dest='command', help='Command to run')

    # Serve command
    serve_parser = subparsers.add_parser(
        'serve',
        help='Run the HTTP/WebSocket control server'
    )
    serve_parser.add_argument('--host', default=SERVER_CONFIG.host, help='Bind address')
    serve_parser.add_argument('--port', type=int, default=SERVER_CONFIG.port, help='Bind port')
    serve_parser.add_argument(
        '--log-file',
        nargs='?',
        const=LOG_FILE,
        default=None,
        help=f'Write server logs to a file instead of stderr (default name: {LOG_FILE})'
    )

    # Probe command
    probe_parser = subparsers.add_parser(
        'probe',
        help='Open the camera and report one frame'
    )

    # Infer command
    infer_parser = subparsers.add_parser(
        'infer',
        help='Run pose estimation on an image file'
    )
    infer_parser.add_argument('image', help='Image file (any format Pillow reads)')
    infer_parser.add_argument('--model', help='ONNX model path (default: bundled model)')

    # Track command
    track_parser = subparsers.add_parser(
        'track',
        help='Track from the camera and print pose updates'
    )
    track_parser.add_argument('--model', help='ONNX model path (default: bundled model)')
    track_parser.add_argument(
        '--seconds',
        type=float,
        default=0,
        help='Stop after this many seconds (0 = until Ctrl-C)'
    )

    for engine_parser in (serve_parser, infer_parser, track_parser):
        engine_parser.add_argument(
            '--acceleration',
            choices=[a.value for a in Acceleration],
            default=Acceleration.CPU.value,
            help='Preferred ONNX Runtime execution provider (falls back to CPU)'
        )

    for camera_parser in (probe_parser, track_parser):
        camera_parser.add_argument(
            '--camera-index',
            type=int,
            default=CAPTURE_CONFIG.camera_index,
            help='Camera device index'
        )
        camera_parser.add_argument(
            '--yuyv',
            action='store_true',
            help='Request raw YUYV frames from the driver'
        )

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    """
    Main CLI entry point.

    Returns:
        Exit code
    """
    parser = build_parser()

    # Parse arguments
    args = parser.parse_args(argv)

    # Setup logging
    setup_logging(args.verbose)

    # Route to command handler
    if not args.command:
        parser.print_help()
        return ExitCode.SUCCESS.value

    if args.command == 'serve':
        return cmd_serve(args)
    elif args.command == 'probe':
        return cmd_probe(args)
    elif args.command == 'infer':
        return cmd_infer(args)
    elif args.command == 'track':
        return cmd_track(args)
    else:
        print(f"Error: Unknown command '{args.command}'", file=sys.stderr)
        return ExitCode.INVALID_ARGS.value


if __name__ == '__main__':
    sys.exit(main())
