"""Asset copying, WebP optimization via an external binary, and the WebP availability index"""

import logging
import shutil
import subprocess
from pathlib import Path


logger = logging.getLogger(__name__)

IMAGE_EXTENSIONS = {'.png', '.jpg', '.jpeg', '.gif', '.bmp', '.tiff'}


def copy_assets(src: Path, dest: Path) -> list[Path]:
    """Copy every file under src into dest, keeping relative paths. Returns copied destinations."""
    copied: list[Path] = []
    if not src.is_dir():
        logger.info("No assets directory at %s", src)
        return copied
    for path in sorted(p for p in src.rglob('*') if p.is_file()):
        target = dest / path.relative_to(src)
        target.parent.mkdir(parents=True, exist_ok=True)
        shutil.copy2(path, target)
        copied.append(target)
        logger.debug("Copied %s", path.relative_to(src))
    return copied


def optimizer_available(optimizer: str) -> bool:
    return shutil.which(optimizer) is not None


def optimize_images(src: Path, dest: Path, optimizer: str = 'optimizt') -> list[Path]:
    """Create <dest>/<rel>.webp for each source image using the optimizer binary.

    The optimizer writes the .webp beside the source; it is moved into dest.
    Failures are logged per image and never abort the build.
    """
    created: list[Path] = []
    images = sorted(p for p in src.rglob('*') if p.is_file() and p.suffix.lower() in IMAGE_EXTENSIONS) \
        if src.is_dir() else []
    if not images:
        return created
    if not optimizer_available(optimizer):
        logger.warning("%s not found, skipping WebP optimization", optimizer)
        return created

    for image in images:
        target = (dest / image.relative_to(src)).with_suffix('.webp')
        try:
            subprocess.run(
                [optimizer, str(image), '--webp', '--force'],
                capture_output=True, text=True, check=True,
            )
        except subprocess.CalledProcessError as e:
            logger.error("Failed to optimize %s: %s", image, e.stderr.strip())
            continue
        produced = image.with_suffix('.webp')
        if not produced.is_file():
            logger.error("Optimizer reported success but %s is missing", produced)
            continue
        target.parent.mkdir(parents=True, exist_ok=True)
        shutil.move(str(produced), target)
        created.append(target)
        logger.info("Optimized %s -> %s", image.relative_to(src), target.name)
    return created


def scan_webp_index(assets_out: Path) -> frozenset[str]:
    """Public URLs (/assets/...) of every .webp under the output assets directory.

    Computed once per build and consumed read-only by the image transform.
    """
    if not assets_out.is_dir():
        return frozenset()
    return frozenset(
        '/assets/' + p.relative_to(assets_out).as_posix()
        for p in assets_out.rglob('*.webp') if p.is_file()
    )
