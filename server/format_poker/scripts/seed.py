"""Insert the default format catalog. Safe to run repeatedly."""

import sys

from format_poker.db.session import SessionLocal
from format_poker.services.format import seed_formats

DEFAULT_CATALOG: list[tuple[str, str, str]] = [
    ("AVIF", "image", "Supported"),
    ("HEIF/HEIC", "image", "Requested"),
    ("WebP", "image", "Supported"),
    ("SVG", "image", "Supported"),
    ("TIFF", "image", "Requested"),
    ("JPEG XL (JXL)", "image", "Requested"),
    ("MP4/H.264", "video", "Supported"),
    ("H.265/HEVC", "video", "Requested"),
    ("AV1", "video", "Requested"),
    ("WebM/VP9", "video", "Requested"),
    ("HLS (m3u8)", "video", "Planned"),
    ("MPEG-TS", "video", "Requested"),
    ("MP3", "audio", "Supported"),
    ("AAC (m4a)", "audio", "Supported"),
    ("FLAC", "audio", "Requested"),
    ("WAV", "audio", "Planned"),
    ("OGG Vorbis", "audio", "Requested"),
    ("Opus", "audio", "Requested"),
]


def seed_default_catalog() -> int:
    """Insert formats from DEFAULT_CATALOG whose names are not taken yet."""
    db = SessionLocal()
    try:
        return seed_formats(db, DEFAULT_CATALOG)
    finally:
        db.close()


def main() -> None:
    try:
        inserted = seed_default_catalog()
    except Exception as e:
        print(f"Seed error: {e}", file=sys.stderr)
        sys.exit(1)
    print(f"Seed: inserted {inserted} format(s)")


if __name__ == "__main__":
    main()
