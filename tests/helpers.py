from pathlib import Path
from typing import Dict, Union

from filesystem.tag_reader import TagReader
from utils.exceptions import TagReadError


class FakeTagReader(TagReader):
    """Serves tags from a dict keyed by filename; exceptions become TagReadError."""

    name = "fake"

    def __init__(self, tags_by_name: Dict[str, Union[Dict[str, str], Exception]] = None):
        self.tags_by_name = tags_by_name or {}
        self.calls = []

    def check_available(self) -> None:
        pass

    def read_format_tags(self, file_path: Path) -> Dict[str, str]:
        self.calls.append(file_path)
        tags = self.tags_by_name.get(file_path.name, {})
        if isinstance(tags, Exception):
            raise TagReadError(str(file_path), str(tags))
        return dict(tags)


def make_file(path: Path, content: bytes = b"audio") -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(content)
    return path
