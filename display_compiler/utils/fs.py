"""Schematic and debug file output, YAML in and out.

Every writer here goes through :func:`_replacing`: the payload is written
to a sibling temp file which then replaces the target, so a reader never
sees a half-written schematic.

Usage:
    from display_compiler.utils import fs
    fs.atomic_yaml_dump(schematic.to_dict(), "out/cluster.yaml")
    data = fs.load_yaml("display_compiler/configs/defaults.yaml")
"""

import os
import tempfile
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, Union

import numpy as np
import yaml
from PIL import Image

PathLike = Union[str, Path]


def ensure_dir(p: PathLike) -> Path:
    p = Path(p)
    p.mkdir(parents=True, exist_ok=True)
    return p


@contextmanager
def _replacing(path: PathLike) -> Iterator[Path]:
    """Yield a temp path beside *path*; move it over *path* on success.

    The temp name keeps the target's extension so Pillow can pick the
    image format from it.

    Raises
    ------
    RuntimeError
        If writing or renaming fails.  The temp file is removed.
    """
    path = Path(path)
    ensure_dir(path.parent)
    fd, tmp_name = tempfile.mkstemp(
        prefix=f".{path.stem}.", suffix=path.suffix, dir=path.parent,
    )
    os.close(fd)
    tmp = Path(tmp_name)
    try:
        yield tmp
        os.replace(tmp, path)
    except OSError as e:
        raise RuntimeError(f"Could not write {path}: {e}") from e
    finally:
        if tmp.exists():
            tmp.unlink()


def atomic_write_bytes(path: PathLike, data: bytes) -> None:
    with _replacing(path) as tmp:
        with open(tmp, 'wb') as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())


def atomic_write_text(path: PathLike, text: str) -> None:
    atomic_write_bytes(path, text.encode('utf-8'))


def atomic_save_image(pixels: np.ndarray, path: PathLike) -> None:
    """Save a uint8 pixel grid, (H, W), (H, W, 3) or (H, W, 4), as an image.

    Row 0 of *pixels* becomes the top row of the file.
    """
    image = Image.fromarray(np.ascontiguousarray(pixels, dtype=np.uint8))
    with _replacing(path) as tmp:
        image.save(tmp)


def dump_yaml(obj: Any) -> str:
    """YAML text with keys in insertion order (block style)."""
    return yaml.safe_dump(obj, sort_keys=False, default_flow_style=False, allow_unicode=True)


def atomic_yaml_dump(obj: Any, path: PathLike) -> None:
    atomic_write_text(path, dump_yaml(obj))


def load_yaml(path: PathLike) -> Dict[str, Any]:
    """Parse a YAML file with ``safe_load``.

    Raises
    ------
    FileNotFoundError
        If *path* does not exist.
    yaml.YAMLError
        If the file is not valid YAML; the message names the file.
    """
    path = Path(path)
    if not path.is_file():
        raise FileNotFoundError(f"YAML file not found: {path}")
    text = path.read_text(encoding='utf-8')
    try:
        return yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise yaml.YAMLError(f"{path}: {e}") from e
