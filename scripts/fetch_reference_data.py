from __future__ import annotations

from admin_contours.config import load_settings
from admin_contours.reference import download_reference_data


def main() -> None:
    settings = load_settings()
    paths = download_reference_data(settings.reference_dir, settings.reference_url)

    for path in paths:
        print(f"Wrote {path}")

if __name__ == "__main__":
    main()
