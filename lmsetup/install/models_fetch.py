# lmsetup/install/models_fetch.py

from __future__ import annotations
import hashlib
import logging
from pathlib import Path
from urllib.parse import urlparse

import requests
from tqdm.auto import tqdm

logger = logging.getLogger("lmsetup.models")

_CHUNK = 2 << 20


def download_model(url: str, target_dir: Path | str, *, sha256: str | None = None) -> Path:
    """
    Descarga un modelo `.gguf` a `target_dir` y devuelve su ruta.

    * Reanuda descargas interrumpidas (fichero `.part` + cabecera `Range`).
    * Si el destino ya existe no descarga nada.
    * Con `sha256`, verifica el checksum y borra el fichero si no coincide.
    """
    target_dir = Path(target_dir).expanduser().resolve()
    target_dir.mkdir(parents=True, exist_ok=True)

    dest = target_dir / _filename_from_url(url)
    if dest.exists():
        logger.info("%s ya existe; no se descarga de nuevo.", dest)
    else:
        logger.info("Descargando %s → %s", url, dest)
        _download_with_resume(url, dest)

    if sha256:
        _verify_sha256(dest, sha256)
    else:
        logger.warning("Sin checksum para %s; no se verifica la integridad.", dest.name)
    return dest

def _filename_from_url(url: str) -> str:
    name = Path(urlparse(url).path).name
    if not name:
        raise ValueError(f"No se puede deducir el nombre del fichero a partir de {url!r}")
    return name

def _download_with_resume(url: str, dest: Path) -> None:
    tmp = dest.with_suffix(dest.suffix + ".part")
    headers = {}
    pos = tmp.stat().st_size if tmp.exists() else 0
    if pos:
        headers["Range"] = f"bytes={pos}-"
        logger.info("Reanudando descarga desde %s bytes.", pos)

    with requests.get(url, stream=True, headers=headers, timeout=30) as r:
        r.raise_for_status()
        if pos and r.status_code != 206:
            # el servidor ignoró Range: se empieza de cero
            pos = 0
        total = int(r.headers.get("Content-Length", 0))
        mode = "ab" if pos else "wb"

        with open(tmp, mode) as fh, tqdm(
            total=total + pos,
            initial=pos,
            unit="B",
            unit_scale=True,
            unit_divisor=1024,
            desc=dest.name,
        ) as bar:
            for chunk in r.iter_content(chunk_size=_CHUNK):
                fh.write(chunk)
                bar.update(len(chunk))

    tmp.replace(dest)

def _verify_sha256(file: Path, sha_expected: str) -> None:
    sha = hashlib.sha256()
    with open(file, "rb") as fh:
        for chunk in iter(lambda: fh.read(_CHUNK), b""):
            sha.update(chunk)
    digest = sha.hexdigest()
    if digest != sha_expected.lower():
        file.unlink(missing_ok=True)
        raise RuntimeError(f"SHA256 no coincide para {file.name}: {digest} ≠ {sha_expected}")
    logger.info("✓ Checksum OK – %s", file.name)
