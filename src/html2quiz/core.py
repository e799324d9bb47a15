"""Core pipeline for html2quiz."""

from __future__ import annotations

import json
import logging
import os
import re
import shutil
import urllib.error
import urllib.parse
import urllib.request
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Tuple

from .extract import ExtractionError, ExtractorConfig, Question, extract_from_text
from .nodes import DocumentParseError
from .render import EXTENSIONS, RENDERERS, page_name

LOG = logging.getLogger("html2quiz")

EXIT_INVALID_ARGS = 6
EXIT_OUTPUT_DIR = 7
EXIT_EXTRACTION = 8
EXIT_IMAGE_FETCH = 9

OUTPUT_FORMATS = tuple(RENDERERS)
IMAGES_SUBDIR = "images"
MANIFEST_NAME = "questions.json"
DEFAULT_IMAGE_TIMEOUT = 30.0
USER_AGENT = "html2quiz"


class ImageFetchError(RuntimeError):
    pass


@dataclass
class PipelineConfig:
    extractor: ExtractorConfig = field(default_factory=ExtractorConfig)
    output_format: str = "html"
    download_images: bool = True
    continue_on_error: bool = False
    verbose: bool = False
    debug: bool = False
    image_timeout: float = DEFAULT_IMAGE_TIMEOUT


@dataclass
class DocumentResult:
    source: Path
    out_dir: Path
    questions: List[Question]


@dataclass
class PipelineResult:
    documents: List[DocumentResult] = field(default_factory=list)
    failures: List[Tuple[Path, str]] = field(default_factory=list)

    @property
    def question_count(self) -> int:
        return sum(len(doc.questions) for doc in self.documents)


LOG_FORMAT = "%(levelname)s: %(message)s"


def setup_logging(verbose: bool, debug: bool) -> None:
    """WARNING by default, INFO with ``verbose``, DEBUG with ``debug``."""
    if debug:
        level = logging.DEBUG
    elif verbose:
        level = logging.INFO
    else:
        level = logging.WARNING
    logging.basicConfig(level=level, format=LOG_FORMAT)
    LOG.setLevel(level)
    LOG.propagate = False
    if not LOG.handlers:
        LOG.addHandler(logging.StreamHandler())
    for handler in LOG.handlers:
        handler.setLevel(level)
        if handler.formatter is None:
            handler.setFormatter(logging.Formatter(LOG_FORMAT))


def page_dir_name(stem: str) -> str:
    """Directory name for a source document's pages."""
    cleaned = re.sub(r"[^A-Za-z0-9._-]+", "_", stem.strip().replace(" ", "_"))
    return cleaned or "document"


def write_output(path: Path, text: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(text, encoding="utf-8", newline="\n")


def write_markers_file(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    payload = ExtractorConfig().to_dict()
    path.write_text(json.dumps(payload, ensure_ascii=False, indent=2) + "\n", encoding="utf-8")


def load_markers_file(path: Path, base: Optional[ExtractorConfig] = None) -> ExtractorConfig:
    try:
        data_raw = json.loads(path.read_text(encoding="utf-8"))
    except Exception as exc:
        raise ValueError(f"Unable to read markers file {path}: {exc}") from exc
    if not isinstance(data_raw, dict):
        raise ValueError(f"Markers file {path} must contain a JSON object")

    known = set(ExtractorConfig.keys())
    values = (base or ExtractorConfig()).to_dict()
    for key, value in data_raw.items():
        if key not in known:
            raise ValueError(f"Markers file {path} has unknown key: {key}")
        if not isinstance(value, str) or not value.strip():
            raise ValueError(f"Markers file {path} has empty or non-string value for key: {key}")
        values[key] = value.strip()
    return ExtractorConfig(**values)


_NATURAL_SPLIT_RE = re.compile(r"(\d+)")


def _natural_key(path: Path) -> List[Any]:
    return [int(part) if part.isdigit() else part.lower() for part in _NATURAL_SPLIT_RE.split(path.stem)]


def list_source_documents(from_dir: Path) -> List[Path]:
    """Return the ``*.html`` files directly inside ``from_dir`` in natural order."""
    return sorted((p for p in from_dir.glob("*.html") if p.is_file()), key=_natural_key)


def image_name_for(src: str) -> str:
    """Cache key for an image reference: the last segment of its URL path."""
    path = urllib.parse.urlsplit(src).path
    name = urllib.parse.unquote(path.rstrip("/").rsplit("/", 1)[-1])
    # Decoded names must stay a single entry inside the cache directory.
    if not name or name in (".", "..") or "/" in name or "\\" in name or "\0" in name:
        raise ImageFetchError(f"Unable to derive a file name from image reference: {src}")
    return name


def _download(src: str, target: Path, timeout: float) -> None:
    request = urllib.request.Request(src, headers={"User-Agent": USER_AGENT})
    partial = target.with_name(target.name + ".part")
    try:
        with urllib.request.urlopen(request, timeout=timeout) as response:
            data = response.read()
        partial.write_bytes(data)
        os.replace(partial, target)
    except (urllib.error.URLError, urllib.error.HTTPError, TimeoutError, ValueError, OSError) as exc:
        if partial.exists():
            partial.unlink()
        raise ImageFetchError(f"Unable to fetch image {src} -> {target}: {exc}") from exc


class ImageCache:
    """Maps image references to files in ``directory``, fetching each at most once.

    ``fetch(src, target)`` is only called when no file exists at the target
    path. Relative references are copied from ``base_dir`` instead.
    """

    def __init__(
        self,
        directory: Path,
        *,
        fetch: Optional[Callable[[str, Path], None]] = None,
        download: bool = True,
        timeout: float = DEFAULT_IMAGE_TIMEOUT,
    ) -> None:
        self.directory = directory
        self.download = download
        self._fetch = fetch or (lambda src, target: _download(src, target, timeout))

    def path_for(self, src: str) -> Path:
        return self.directory / image_name_for(src)

    def resolve(self, src: str, base_dir: Optional[Path] = None) -> Path:
        target = self.path_for(src)
        if target.exists() or not self.download:
            return target
        self.directory.mkdir(parents=True, exist_ok=True)
        scheme = urllib.parse.urlsplit(src).scheme
        if scheme or base_dir is None:
            LOG.debug("Fetching image %s -> %s", src, target)
            self._fetch(src, target)
        else:
            local = (base_dir / urllib.parse.unquote(urllib.parse.urlsplit(src).path)).resolve()
            if not local.is_file():
                raise ImageFetchError(f"Image not found for reference {src}: {local}")
            LOG.debug("Copying image %s -> %s", local, target)
            try:
                shutil.copyfile(local, target)
            except OSError as exc:
                raise ImageFetchError(f"Unable to copy image {local} -> {target}: {exc}") from exc
        return target


def _relative_link(target: Path, start: Path) -> str:
    return Path(os.path.relpath(target, start)).as_posix()


def build_pages(
    questions: List[Question],
    *,
    page_dir: Path,
    cache: ImageCache,
    output_format: str,
    base_dir: Optional[Path] = None,
) -> Tuple[Dict[str, str], List[Dict[str, Any]]]:
    """Render every question; returns page texts keyed by file name and manifest entries."""
    renderer = RENDERERS[output_format]
    extension = EXTENSIONS[output_format]
    total = len(questions)
    pages: Dict[str, str] = {}
    manifest: List[Dict[str, Any]] = []
    for index, question in enumerate(questions, start=1):
        image_link = None
        if question.image_src is not None:
            image_link = _relative_link(cache.resolve(question.image_src, base_dir), page_dir)
        pages[page_name(index, extension)] = renderer(question, index, total, image_link)
        entry = {"index": index}
        entry.update(question.to_dict())
        entry["image_path"] = image_link
        manifest.append(entry)
    return pages, manifest


def process_document(document_path: Path, out_dir: Path, config: PipelineConfig, cache: ImageCache) -> DocumentResult:
    """Extract and render one document; nothing is written unless every step succeeds."""
    try:
        raw = document_path.read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        raise DocumentParseError(f"{document_path}: {exc}") from exc
    questions = extract_from_text(raw, config.extractor)
    page_dir = out_dir / page_dir_name(document_path.stem)
    pages, manifest = build_pages(
        questions,
        page_dir=page_dir,
        cache=cache,
        output_format=config.output_format,
        base_dir=document_path.parent,
    )
    for name, text in pages.items():
        write_output(page_dir / name, text)
    write_output(page_dir / MANIFEST_NAME, json.dumps(manifest, ensure_ascii=False, indent=2) + "\n")
    return DocumentResult(source=document_path, out_dir=page_dir, questions=questions)


def run_processing_pipeline(
    *,
    from_dir: Path,
    out_dir: Path,
    config: PipelineConfig,
    fetch: Optional[Callable[[str, Path], None]] = None,
) -> PipelineResult:
    if config.output_format not in RENDERERS:
        raise ValueError(f"Unsupported output format: {config.output_format}")

    documents = list_source_documents(from_dir)
    if not documents:
        LOG.warning("No .html documents found in %s", from_dir)

    out_dir.mkdir(parents=True, exist_ok=True)
    cache = ImageCache(
        out_dir / IMAGES_SUBDIR,
        fetch=fetch,
        download=config.download_images,
        timeout=config.image_timeout,
    )

    result = PipelineResult()
    total = len(documents)
    for position, document_path in enumerate(documents, start=1):
        try:
            doc_result = process_document(document_path, out_dir, config, cache)
        except (DocumentParseError, ExtractionError, ImageFetchError) as exc:
            if not config.continue_on_error:
                raise
            LOG.error("Skipping %s: %s", document_path.name, exc)
            result.failures.append((document_path, str(exc)))
            continue
        result.documents.append(doc_result)
        LOG.info(
            "[%d/%d] %s: %d question(s)",
            position,
            total,
            document_path.name,
            len(doc_result.questions),
        )

    LOG.info(
        "Extracted %d question(s) from %d document(s); %d failed",
        result.question_count,
        len(result.documents),
        len(result.failures),
    )
    return result
