"""
Simple https server to upload and download files.

Usage:
    linkdrop [ADDR] [PORT] [--upload-limit MIB] [--certs-dir DIR] ...

A self-signed certificate is generated in the certs directory on first start
unless one is already present there.
"""

from __future__ import annotations

import argparse
import sys

import uvicorn

from linkdrop.certs import ensure_certificates
from linkdrop.config import settings


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="linkdrop", description="Simple https server to upload and download files."
    )
    parser.add_argument("addr", nargs="?", default=settings.host, help="ip address")
    parser.add_argument("port", nargs="?", type=int, default=settings.port, help="port")
    parser.add_argument(
        "-u",
        "--upload-limit",
        type=int,
        default=settings.upload_limit_mb,
        help="upload limit (mebibytes)",
    )
    parser.add_argument(
        "--certs-dir", default=str(settings.certs_dir), help="directory with the tls certificates"
    )
    parser.add_argument("--key-file-name", default=settings.key_file_name, help="file name of key")
    parser.add_argument(
        "--cert-file-name", default=settings.cert_file_name, help="file name of cert"
    )
    parser.add_argument(
        "--subject-alt-name",
        default=settings.subject_alt_name,
        help="self signed cert subject alt name",
    )
    parser.add_argument(
        "--no-tls", action="store_true", help="serve plain http (e.g. behind a tls proxy)"
    )
    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)

    settings.host = args.addr
    settings.port = args.port
    settings.upload_limit_mb = args.upload_limit

    ssl_options = {}
    if not args.no_tls:
        try:
            cert_path, key_path = ensure_certificates(
                args.certs_dir,
                key_file_name=args.key_file_name,
                cert_file_name=args.cert_file_name,
                subject_alt_name=args.subject_alt_name,
            )
        except OSError as e:
            print(f"ERROR: could not generate or load certs: {e}", file=sys.stderr)
            return 1
        ssl_options = {"ssl_certfile": str(cert_path), "ssl_keyfile": str(key_path)}

    # Imported late so the app picks up the settings applied above
    from linkdrop.main import app

    uvicorn.run(app, host=args.addr, port=args.port, log_level=settings.log_level.lower(), **ssl_options)
    return 0


if __name__ == "__main__":
    sys.exit(main())
