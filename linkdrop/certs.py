"""Self-signed TLS certificate bootstrap."""

import ipaddress
import logging
import os
from datetime import datetime, timedelta, timezone
from pathlib import Path

from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import ec
from cryptography.x509.oid import NameOID

logger = logging.getLogger(__name__)

CERT_VALID_DAYS = 3650


def _subject_alt_name(name: str) -> x509.GeneralName:
    """Use an IPAddress entry when ``name`` parses as an address, DNSName otherwise."""
    try:
        return x509.IPAddress(ipaddress.ip_address(name))
    except ValueError:
        return x509.DNSName(name)


def generate_self_signed(subject_alt_name: str) -> tuple[bytes, bytes]:
    """Return (cert_pem, key_pem) for a fresh self-signed certificate."""
    key = ec.generate_private_key(ec.SECP256R1())
    subject = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, subject_alt_name)])
    now = datetime.now(timezone.utc)

    cert = (
        x509.CertificateBuilder()
        .subject_name(subject)
        .issuer_name(subject)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - timedelta(minutes=5))
        .not_valid_after(now + timedelta(days=CERT_VALID_DAYS))
        .add_extension(
            x509.SubjectAlternativeName([_subject_alt_name(subject_alt_name)]),
            critical=False,
        )
        .sign(key, hashes.SHA256())
    )

    cert_pem = cert.public_bytes(serialization.Encoding.PEM)
    key_pem = key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )
    return cert_pem, key_pem


def _write_private(path: Path, data: bytes) -> None:
    """Write ``data`` to a file that is never readable by other users."""
    path.unlink(missing_ok=True)
    fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_EXCL, 0o600)
    with os.fdopen(fd, "wb") as f:
        f.write(data)


def ensure_certificates(
    certs_dir: Path,
    key_file_name: str = "key.pem",
    cert_file_name: str = "cert.pem",
    subject_alt_name: str = "localhost",
) -> tuple[Path, Path]:
    """Generate a key pair in ``certs_dir`` unless both files already exist.

    Returns (cert_path, key_path).
    """
    certs_dir = Path(certs_dir)
    key_path = certs_dir / key_file_name
    cert_path = certs_dir / cert_file_name

    if not key_path.exists() or not cert_path.exists():
        logger.info(f"Generating self-signed certificate for {subject_alt_name} in {certs_dir}")
        cert_pem, key_pem = generate_self_signed(subject_alt_name)
        certs_dir.mkdir(parents=True, exist_ok=True)
        _write_private(key_path, key_pem)
        cert_path.write_bytes(cert_pem)

    return cert_path, key_path
