"""
Import resolution for the synthesized source.

solc's native binary has no callback hook (unlike solc-js), so imports are
resolved up front: every import directive is looked up through the callback
and the contents are added to the standard-JSON `sources` map, transitively.
Imports the callback cannot find are left for solc to report.
"""
import logging
import posixpath
import re
from pathlib import Path
from typing import Callable, Iterable, Optional
from urllib.parse import urljoin

import requests

from solshell.rpc import TIMEOUT

logger = logging.getLogger(__name__)

# {"contents": str} or {"error": str}, the shape of solc's import callback
ImportResult = dict[str, str]
ImportCallback = Callable[[str], ImportResult]

_IMPORT_RE = re.compile(
    r"""^\s*import\s+(?:[^;"']*?\s+from\s+)?["']([^"']+)["'][^;]*;""", re.MULTILINE
)
_COMMENT_RE = re.compile(r"//[^\n]*|/\*.*?\*/", re.DOTALL)

NOT_FOUND = "File not found inside the base path or any of the include paths."


def find_imports(source_code: str) -> list[str]:
    return _IMPORT_RE.findall(_COMMENT_RE.sub("", source_code))


def resolve_unit_name(importer: str, path: str) -> str:
    """
    The source unit name solc assigns to `path` imported from `importer`:
    relative paths are resolved against the importing unit, everything
    else is used verbatim.
    """
    if not path.startswith(("./", "../")):
        return path
    if importer.startswith("https://"):
        return urljoin(importer, path)
    return posixpath.normpath(posixpath.join(posixpath.dirname(importer), path))


class FileImportResolver:
    """
    Search `base_path`, then each of `include_paths`, for an import.
    `https://` imports are fetched only if `allow_http` is set; that is a
    blocking network request made while compiling.
    """

    def __init__(
        self,
        base_path: str = "",
        include_paths: Iterable[str] = (),
        allow_http: bool = False,
    ):
        self.base_path = base_path
        self.include_paths = list(include_paths)
        self.allow_http = allow_http

    @property
    def prefixes(self) -> list[str]:
        return [self.base_path] + self.include_paths

    def __call__(self, source_path: str) -> ImportResult:
        if source_path.startswith("https://"):
            if not self.allow_http:
                return {"error": f"https imports are disabled: {source_path}"}
            return self._fetch(source_path)

        for prefix in self.prefixes:
            p = Path(prefix) / source_path if prefix else Path(source_path)
            if p.is_file():
                try:
                    return {"contents": p.read_text(encoding="utf-8")}
                except OSError as e:
                    return {"error": f"Error reading {p}: {e}"}

        return {"error": NOT_FOUND}

    def _fetch(self, url: str) -> ImportResult:
        logger.info("fetching remote import %s", url)
        try:
            res = requests.get(url, timeout=TIMEOUT)
            res.raise_for_status()
        except requests.RequestException as e:
            return {"error": f"Error fetching {url}: {e}"}
        return {"contents": res.text}


def collect_sources(
    sources: dict[str, dict], import_callback: Optional[ImportCallback]
) -> dict[str, dict]:
    """
    Return a copy of the standard-JSON `sources` map extended with every
    import reachable from it that `import_callback` can provide.
    """
    ret = dict(sources)
    if import_callback is None:
        return ret

    pending = list(ret.items())
    while pending:
        unit_name, source = pending.pop()
        for path in find_imports(source.get("content", "")):
            name = resolve_unit_name(unit_name, path)
            if name in ret:
                continue
            result = import_callback(name)
            if "contents" not in result:
                logger.debug("unresolved import %s: %s", name, result.get("error"))
                continue
            ret[name] = {"content": result["contents"]}
            pending.append((name, ret[name]))

    return ret
