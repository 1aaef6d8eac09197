#!/usr/bin/env python3
"""CLI script for logging in with FaceID via webcam.

Takes several straight-on captures, ranks them against their consensus and
submits them to the login endpoint until one is accepted.

Usage:
    python scripts/login_webcam.py
    python scripts/login_webcam.py --camera 1 --captures 7
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
from faceid.config import Config
from faceid.errors import FaceIdApiError, FaceIdError, NoUsableCaptures
from faceid.logging_config import get_logger, setup_logging
from faceid.matcher import SimilarityMatcher
from faceid.model_lifecycle import ModelLifecycleService
from faceid.services import LoginService

logger = get_logger(__name__)


def parse_args() -> argparse.Namespace:
    """Parse command-line arguments."""
    parser = argparse.ArgumentParser(
        description="Log in with FaceID via webcam",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
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
        "--captures",
        type=int,
        default=None,
        help="Number of captures (defaults to LOGIN_CAPTURES from .env)",
    )

    return parser.parse_args()


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

    async with FaceIdApiClient(config.api_base_url, timeout=config.api_timeout) as client:
        service = LoginService(
            CameraSession(),
            models,
            client,
            matcher=SimilarityMatcher(threshold=config.match_threshold),
            captures=args.captures or config.login_captures,
            min_confidence=config.min_confidence,
            constraints=constraints,
        )

        try:
            tokens = await service.login()
        except NoUsableCaptures:
            print("No face detected. Check lighting and look straight at the camera.")
            return 1
        except FaceIdApiError as e:
            print(f"No matching face found: {e}")
            return 1
        except FaceIdError as e:
            logger.error(f"Login failed: {e}")
            print(f"Error: {e}")
            return 1

    print("Login successful")
    print(f"Response keys: {sorted(tokens)}")
    return 0


def main() -> None:
    """Main function."""
    args = parse_args()

    config = Config.from_env()
    setup_logging(level=config.log_level)

    constraints = camera_constraints(args, config)
    if not CameraSession().is_available(constraints):
        print(f"Error: camera {constraints.camera_id} is not available, see the log for details")
        sys.exit(1)

    print("Look straight at the camera...")
    try:
        code = asyncio.run(run(args, config, constraints))
    except KeyboardInterrupt:
        print()
        print("Login interrupted by user (Ctrl+C)")
        code = 1

    sys.exit(code)


if __name__ == "__main__":
    main()
