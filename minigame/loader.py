"""Resolve asset identifiers to Pillow images."""

from pathlib import Path

from PIL import Image

from minigame.errors import AssetLoadError


class ImageLoader:
    """Opens images relative to an assets directory.

    Identifiers may start with "/" (as web asset paths do); they are
    always resolved inside ``base_dir``.
    """

    def __init__(self, base_dir: str | Path = "assets"):
        self.base_dir = Path(base_dir)

    def path_for(self, identifier: str) -> Path:
        return self.base_dir / identifier.lstrip("/")

    def resolve(self, identifier: str) -> Image.Image:
        path = self.path_for(identifier)
        try:
            with Image.open(path) as img:
                img.load()
                return img.convert("RGBA")
        except (FileNotFoundError, OSError) as e:
            raise AssetLoadError(f"Failed to load image: {identifier} - {e}") from e
