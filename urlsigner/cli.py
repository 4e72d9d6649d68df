# Copyright (c) 2026 Pyry Haulos
#
# This software is released under the MIT License.
# https://opensource.org/licenses/MIT

"""``urlsigner`` command: print a V4 signed URL.

Usage::

    urlsigner [--config PATH] [--key-file PATH] [-d SECONDS]
              [-m METHOD | --resumable] [--debug] BUCKET [OBJECT]

The signed URL is written to stdout; diagnostics go to stderr.
"""

from __future__ import annotations

import argparse
import logging
import sys
from datetime import timedelta
from pathlib import Path

from urlsigner.blob_signer import ServiceAccountKeyError
from urlsigner.bucket import InvalidBucketNameError
from urlsigner.config import ConfigError, SignerConfig
from urlsigner.logging import configure_logging
from urlsigner.url_signer import RESUMABLE, UrlSigner
from urlsigner.v4 import MalformedSignatureError


logger = logging.getLogger(__name__)


def _positive_int(value: str) -> int:
    try:
        number = int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(
            f"invalid integer: {value!r}"
        ) from None
    if number <= 0:
        raise argparse.ArgumentTypeError(f"must be positive: {number}")
    return number


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser."""
    parser = argparse.ArgumentParser(
        prog="urlsigner",
        description="Create a V4 signed URL for a storage object.",
    )
    parser.add_argument("bucket", help="Bucket name")
    parser.add_argument(
        "object",
        nargs="?",
        default=None,
        help="Object name (omit to sign the bucket itself)",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to config YAML (default: XDG config directory)",
    )
    parser.add_argument(
        "--key-file",
        type=Path,
        default=None,
        help="Service account JSON key file (overrides config)",
    )
    parser.add_argument(
        "-d",
        "--duration",
        type=_positive_int,
        default=None,
        help="Validity period in seconds (default: from config, 900)",
    )
    methods = parser.add_mutually_exclusive_group()
    methods.add_argument(
        "-m",
        "--method",
        type=str.upper,
        default=None,
        help="HTTP method to sign for (default: GET)",
    )
    methods.add_argument(
        "--resumable",
        action="store_true",
        help="Sign the start of a resumable upload",
    )
    parser.add_argument(
        "--debug", action="store_true", help="Enable debug logging"
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    """Entry point for the ``urlsigner`` console script.

    Returns:
        Exit code (0 on success, 1 on error).
    """
    args = build_parser().parse_args(argv)

    try:
        config = SignerConfig.from_yaml(args.config)
    except ConfigError as e:
        configure_logging(level=logging.INFO)
        logger.error("Configuration error: %s", e)
        return 1

    configure_logging(
        level=logging.DEBUG if args.debug else config.effective_log_level
    )

    key_file = args.key_file or config.service_account_key
    if key_file is None:
        logger.error(
            "No service account key: pass --key-file or set "
            "service_account_key in the config file"
        )
        return 1

    duration = timedelta(seconds=args.duration or config.default_duration)
    method = RESUMABLE if args.resumable else args.method

    try:
        signer = UrlSigner.from_service_account_file(key_file)
        url = signer.sign(
            args.bucket, args.object, duration=duration, method=method
        )
    except (
        ServiceAccountKeyError,
        InvalidBucketNameError,
        MalformedSignatureError,
    ) as e:
        logger.error("%s", e)
        return 1
    except UnicodeEncodeError as e:
        # Undecodable argv bytes arrive as lone surrogates
        logger.error("Arguments must be valid UTF-8: %s", e)
        return 1

    print(url)
    return 0


if __name__ == "__main__":  # pragma: no cover
    sys.exit(main())
