import logging
import sys
from pathlib import Path

from dotenv import dotenv_values

from capicua_imager import CapicuaImager, RemoteRequestError


def upload_and_report(imager, image_path, compress=False, webp=False):
    """
    Upload a local image as raw bytes and print what the API stored.
    """
    image_path = Path(image_path)
    if not image_path.exists():
        raise FileNotFoundError(f"{image_path} not found")

    try:
        uploaded = imager.upload_image(image_path.read_bytes(), compress=compress, webp=webp)
    except RemoteRequestError as e:
        print(f"✗ HTTP {e.status_code}: {e.body}")
        raise

    print("✓ Uploaded")
    print(uploaded)
    return uploaded


def main(argv=None, env_file=Path(".env")):
    argv = sys.argv[1:] if argv is None else argv
    env = dotenv_values(env_file)
    image_path = argv[0] if argv else env.get("SMOKE_IMAGE_PATH")
    if not image_path:
        raise SystemExit("Pass an image path or set SMOKE_IMAGE_PATH in .env")

    with CapicuaImager.from_env(env_file) as imager:
        return upload_and_report(imager, image_path)


if __name__ == "__main__":
    logging.basicConfig(level=logging.DEBUG)
    main()
