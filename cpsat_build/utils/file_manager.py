import io
import os
import shutil
import tarfile
import zipfile
import zlib
from ..cli_logger import logger
from ..errors import ExtractionFailed

# -------------------- Helpers: safe paths --------------------

def safe_join(base, *paths):
    """Join paths under ``base``, refusing anything that escapes it."""
    base = os.path.abspath(base)
    final = os.path.abspath(os.path.join(base, *paths))
    if not final.startswith(base + os.sep) and final != base:
        raise ExtractionFailed(f"archive entry escapes the extraction directory: {os.path.join(*paths)}", path=final)
    return final


def normalize_member_path(name, prefix=None, expected_dir=None):
    """Clean an archive entry name and rewrite its versioned top-level directory.

    Releases do not always agree on the name of the directory everything is
    nested under. Any top-level directory starting with ``prefix`` is renamed
    to ``expected_dir`` so the unpacked tree always lands where the caller
    will look for it. Returns None for entries that name nothing (``./``).
    """
    cleaned = name.replace("\\", "/")
    if cleaned.startswith("/") or (len(cleaned) > 1 and cleaned[1] == ":"):
        raise ExtractionFailed(f"archive entry has an absolute path: {name}")
    parts = [p for p in cleaned.split("/") if p not in ("", ".")]
    if not parts:
        return None
    if prefix and expected_dir and parts[0] != expected_dir and parts[0].startswith(prefix):
        logger.debug(f"Rewriting top-level directory {parts[0]} -> {expected_dir}")
        parts[0] = expected_dir
    return "/".join(parts)


def _real_inside(dest_dir, path):
    """Resolve ``path`` through any links already on disk and keep it under ``dest_dir``."""
    base = os.path.realpath(dest_dir)
    real = os.path.realpath(path)
    if real != base and not real.startswith(base + os.sep):
        raise ExtractionFailed(f"archive entry resolves outside the extraction directory: {path}", path=real)
    return real


def _link_inside(dest_dir, link_path, link_target):
    if os.path.isabs(link_target):
        raise ExtractionFailed(f"symlink {link_path} points to an absolute path: {link_target}", path=link_path)
    parent = _real_inside(dest_dir, os.path.dirname(link_path))
    return _real_inside(dest_dir, os.path.join(parent, link_target))


def _replace_existing(path):
    if os.path.islink(path) or os.path.isfile(path):
        os.remove(path)

# -------------------- Extraction --------------------

def extract_tar_stream(fileobj, dest_dir, prefix=None, expected_dir=None):
    """Unpack a gzip-compressed tar stream read sequentially from ``fileobj``."""
    os.makedirs(dest_dir, exist_ok=True)
    written = 0
    try:
        with tarfile.open(fileobj=fileobj, mode="r|gz") as tar_ref:
            for member in tar_ref:
                rel_path = normalize_member_path(member.name, prefix, expected_dir)
                if rel_path is None:
                    continue
                member_path = safe_join(dest_dir, rel_path)
                if member.isdir():
                    _real_inside(dest_dir, member_path)
                    os.makedirs(member_path, exist_ok=True)
                    continue
                _real_inside(dest_dir, os.path.dirname(member_path))
                os.makedirs(os.path.dirname(member_path), exist_ok=True)
                if member.issym():
                    _link_inside(dest_dir, member_path, member.linkname)
                    _replace_existing(member_path)
                    os.symlink(member.linkname, member_path)
                elif member.islnk():
                    link_rel = normalize_member_path(member.linkname, prefix, expected_dir)
                    source = safe_join(dest_dir, link_rel or "")
                    _real_inside(dest_dir, source)
                    _replace_existing(member_path)
                    shutil.copy2(source, member_path)
                elif member.isfile():
                    logger.debug(f"extracting: {rel_path}")
                    _replace_existing(member_path)
                    src = tar_ref.extractfile(member)
                    with src as src_file, open(member_path, "wb") as out:
                        shutil.copyfileobj(src_file, out)
                    if member.mode:
                        os.chmod(member_path, member.mode & 0o777)
                else:
                    logger.debug(f"skipping special entry: {member.name}")
                    continue
                written += 1
    except (tarfile.TarError, EOFError, zlib.error, OSError) as e:
        raise ExtractionFailed(f"cannot unpack tar.gz archive: {e}", path=dest_dir)
    logger.success(f"Extracted {written} entries to {dest_dir}")
    return dest_dir


def extract_zip_bytes(payload, dest_dir, prefix=None, expected_dir=None):
    """Unpack an in-memory zip archive; every entry path is checked before anything is written."""
    try:
        zip_ref = zipfile.ZipFile(io.BytesIO(payload))
    except zipfile.BadZipFile as e:
        raise ExtractionFailed(f"cannot open zip archive: {e}", path=dest_dir)

    with zip_ref:
        planned = []
        for member in zip_ref.infolist():
            rel_path = normalize_member_path(member.filename, prefix, expected_dir)
            if rel_path is None:
                continue
            planned.append((member, safe_join(dest_dir, rel_path)))

        try:
            os.makedirs(dest_dir, exist_ok=True)
            for member, target_path in planned:
                if member.is_dir():
                    _real_inside(dest_dir, target_path)
                    os.makedirs(target_path, exist_ok=True)
                    continue
                _real_inside(dest_dir, os.path.dirname(target_path))
                os.makedirs(os.path.dirname(target_path), exist_ok=True)
                _replace_existing(target_path)
                logger.debug(f"extracting: {member.filename}")
                with zip_ref.open(member, "r") as src, open(target_path, "wb") as out:
                    shutil.copyfileobj(src, out)
                mode = (member.external_attr >> 16) & 0o777
                if mode:
                    os.chmod(target_path, mode)
        except (zipfile.BadZipFile, zlib.error, RuntimeError, OSError) as e:
            raise ExtractionFailed(f"cannot unpack zip archive: {e}", path=dest_dir)

    logger.success(f"Extracted {len(planned)} entries to {dest_dir}")
    return dest_dir
