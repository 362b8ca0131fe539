"""Simple entrypoint to run the OOTD stylist locally."""

import argparse
import json
from pathlib import Path

from ootd_app.app import OOTDApp
from logic.image_codec import encode_data_uri


def main() -> None:
    parser = argparse.ArgumentParser(description="Tag a clothing photo and print the closet summary.")
    parser.add_argument("photo", nargs="?", help="Path to a PNG, JPEG or WEBP photo to add to the guest closet")
    args = parser.parse_args()

    app = OOTDApp()
    try:
        if args.photo:
            path = Path(args.photo)
            mime_type = "image/jpeg" if path.suffix.lower() in {".jpg", ".jpeg"} else f"image/{path.suffix.lstrip('.').lower()}"
            item = app.add_closet_item(encode_data_uri(path.read_bytes(), mime_type))
            print(json.dumps(item.sanitized(), indent=2))
        print(json.dumps([gap.to_dict() for gap in app.closet_gaps()], indent=2))
    finally:
        app.close()


if __name__ == "__main__":
    main()
