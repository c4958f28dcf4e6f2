"""Shared fixtures for bunny_uploader tests."""
import asyncio
from pathlib import Path
from typing import Dict, Iterable, List

import pytest


class RecordingUploader:
    """IUploader double that records calls and fails or hangs on demand."""

    def __init__(
        self,
        fail: Iterable[str] = (),
        hang: Iterable[str] = (),
        flaky: Dict[str, int] = None,
        delay: float = 0.0,
    ):
        self.fail = set(fail)
        self.hang = set(hang)
        self.flaky = dict(flaky or {})
        self.delay = delay
        self.calls: List[str] = []
        self.active = 0
        self.max_active = 0

    async def upload(self, token, local_path: Path, relative_path: str) -> None:
        self.calls.append(relative_path)
        self.active += 1
        self.max_active = max(self.max_active, self.active)
        try:
            if relative_path in self.hang:
                await asyncio.sleep(30)
            if self.delay:
                await asyncio.sleep(self.delay)
            if relative_path in self.fail:
                raise RuntimeError(f"boom: {relative_path}")
            if self.flaky.get(relative_path, 0) > 0:
                self.flaky[relative_path] -= 1
                raise ConnectionError(f"flaky: {relative_path}")
        finally:
            self.active -= 1


@pytest.fixture
def make_tree(tmp_path):
    """Create files from relative paths under tmp_path/root and return the root."""

    def _make(*relative_paths: str) -> Path:
        root = tmp_path / "root"
        root.mkdir(exist_ok=True)
        for rel in relative_paths:
            path = root / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(f"content of {rel}", encoding="utf-8")
        return root

    return _make


@pytest.fixture
def sample_tree(make_tree):
    return make_tree("a.txt", "b.txt", "sub/fail.txt")


@pytest.fixture
def uploader_factory():
    return RecordingUploader
