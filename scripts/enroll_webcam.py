#!/usr/bin/env python3
"""CLI script for enrolling a FaceID via webcam.

Guides the user through five head poses (center, left, right, up, down),
aggregates the accepted captures into one embedding and submits it to the
enrollment endpoint of the backend.

Usage:
    python scripts/enroll_webcam.py --email user@example.com
    python scripts/enroll_webcam.py --email user@example.com --camera 1 --backend insightface
"""

from __future__ import annotations

import argparse
import asyncio
import sys
from pathlib import Path

# Add parent directory to path for imports
sys.path.insert(0, str(Path(__file__).parent.parent))

from faceid.api_client import FaceIdApiClient
from faceid.backends import create_capability_loader
from faceid.camera import CameraConstraints, CameraSession
from faceid.capture import POSE_PROMPTS, CaptureState, GuidedCaptureOrchestrator
from faceid.config import Config
from faceid.errors import CaptureCancelled, FaceIdError
from faceid.interfaces import PoseTag
from faceid.logging_config import get_logger, setup_logging
from faceid.model_lifecycle import ModelLifecycleService
from faceid.services import EnrollmentService

logger = get_logger(__name__)


def parse_args() -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Enroll a FaceID via webcam",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )

    parser.add_argument(
        "--email",
        type=str,
        required=True,
        help="Account email the face is enrolled for",
    )

    parser.add_argument(
        "--camera",
        type=int,
        default=None,
        help="Camera device ID (defaults to CAMERA_ID from .env)",
    )

    parser.add_argument(
        "--backend",
        choices=["dlib", "insightface"],
        default=None,
        help="Embedding backend (defaults to FACEID_BACKEND from .env)",
    )

    parser.add_argument(
        "--rounds",
        type=int,
        default=2,
        help="Guided capture rounds allowed if nothing usable is captured",
    )

    parser.add_argument(
        "--log-file",
        type=str,
        default=None,
        help="Optional log file path",
    )

    return parser.parse_args()


def print_section(title: str) -> None:
    """Print a section divider."""
    print()
    print("=" * 70)
    print(f"  {title}")
    print("=" * 70)


def on_progress(state: CaptureState, progress: float) -> None:
    """Print the pose prompt and progress bar."""
    try:
        prompt = POSE_PROMPTS[PoseTag(state.value)]
    except ValueError:
        # idle/complete have no prompt
        prompt = ""
    filled = int(progress / 5)
    print(f"\r[{'#' * filled}{'.' * (20 - filled)}] {progress:5.1f}%  {prompt:<40}", end="", flush=True)


def camera_constraints(args: argparse.Namespace, config: Config) -> CameraConstraints:
    camera_id = args.camera if args.camera is not None else config.camera_id
    return CameraConstraints(
        camera_id=camera_id,
        width=config.frame_width,
        height=config.frame_height,
    )


async def run(args: argparse.Namespace, config: Config, constraints: CameraConstraints) -> int:
    models = ModelLifecycleService(
        create_capability_loader(args.backend, config),
        load_timeout=config.model_load_timeout,
    )
    orchestrator = GuidedCaptureOrchestrator(
        CameraSession(),
        models,
        attempts_per_pose=config.attempts_per_pose,
        settle_delay=config.settle_delay,
        attempt_delay=config.attempt_delay,
        min_confidence=config.min_confidence,
        constraints=constraints,
        on_progress=on_progress,
    )

    async with FaceIdApiClient(config.api_base_url, timeout=config.api_timeout) as client:
        service = EnrollmentService(orchestrator, client, max_rounds=args.rounds)

        print_section("Capturing")
        try:
            embedding = await service.enroll(args.email)
        except CaptureCancelled:
            print()
            print("Enrollment cancelled")
            return 1
        except FaceIdError as e:
            print()
            logger.error(f"Enrollment failed: {e}")
            print(f"Error: {e}")
            return 1

    print()
    print_section("Enrollment Complete")
    print(f"Enrolled FaceID for {args.email} (dim={embedding.shape[0]})")
    return 0


def main() -> None:
    """Main function."""
    args = parse_args()

    config = Config.from_env()
    setup_logging(level=config.log_level, log_file=args.log_file)

    print_section("FaceID Enrollment")
    print(f"Email:             {args.email}")
    print(f"Backend:           {args.backend or config.backend}")
    print(f"Attempts per pose: {config.attempts_per_pose}")
    print(f"API:               {config.api_base_url}")
    print()
    print("Follow the prompts and hold each pose until the next one appears.")
    print("Press Ctrl+C to cancel.")

    constraints = camera_constraints(args, config)
    if not CameraSession().is_available(constraints):
        print(f"Error: camera {constraints.camera_id} is not available, see the log for details")
        sys.exit(1)

    input("Press ENTER to start...")

    try:
        code = asyncio.run(run(args, config, constraints))
    except KeyboardInterrupt:
        print()
        print("Enrollment interrupted by user (Ctrl+C)")
        code = 1

    sys.exit(code)


if __name__ == "__main__":
    main()
