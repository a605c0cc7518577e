from abc import ABC, abstractmethod
from typing import Dict, List, Optional, Tuple
from pathlib import Path
import asyncio
import structlog

from agentcore.domain.context.token_estimator import DefaultTokenEstimator, TokenEstimator
from agentcore.domain.models.checkpoint import CheckpointInfo
from agentcore.domain.models.conversation import ContextSnapshot
from agentcore.exceptions import CheckpointError

logger = structlog.get_logger(__name__)


class CheckpointStore(ABC):
    """Snapshot store addressed by (run id, checkpoint id)"""

    @abstractmethod
    async def save(self, run_id: str, checkpoint_id: str, snapshot: ContextSnapshot) -> CheckpointInfo:
        pass

    @abstractmethod
    async def load(self, run_id: str, checkpoint_id: str) -> Optional[ContextSnapshot]:
        """Return the snapshot, or None when it does not exist"""
        pass

    @abstractmethod
    async def list(self, run_id: str) -> List[CheckpointInfo]:
        """Metadata of every checkpoint of a run, oldest first"""
        pass

    @abstractmethod
    async def delete(self, run_id: str, checkpoint_id: str) -> bool:
        pass


def build_checkpoint_info(
    run_id: str,
    checkpoint_id: str,
    snapshot: ContextSnapshot,
    estimator: TokenEstimator
) -> CheckpointInfo:
    return CheckpointInfo(
        checkpoint_id=checkpoint_id,
        run_id=run_id,
        step_name=snapshot.step_name,
        message_count=len(snapshot.messages),
        estimated_tokens=sum(estimator.estimate_tokens(m.content) for m in snapshot.messages)
    )


def _require_ids(run_id: str, checkpoint_id: str):
    if not run_id:
        raise CheckpointError("run_id is required", run_id, checkpoint_id)
    if not checkpoint_id:
        raise CheckpointError("checkpoint_id is required", run_id, checkpoint_id)


class InMemoryCheckpointStore(CheckpointStore):
    """Nested in-memory map: run id -> checkpoint id -> (snapshot, info)"""

    def __init__(self, estimator: Optional[TokenEstimator] = None):
        self.estimator = estimator or DefaultTokenEstimator()
        self.checkpoints: Dict[str, Dict[str, Tuple[ContextSnapshot, CheckpointInfo]]] = {}
        # Only runs that were saved to get a lock
        self._locks: Dict[str, asyncio.Lock] = {}

    async def save(self, run_id: str, checkpoint_id: str, snapshot: ContextSnapshot) -> CheckpointInfo:
        """Store an independent copy of the snapshot"""

        _require_ids(run_id, checkpoint_id)
        if snapshot is None:
            raise CheckpointError("snapshot is required", run_id, checkpoint_id)

        info = build_checkpoint_info(run_id, checkpoint_id, snapshot, self.estimator)
        async with self._locks.setdefault(run_id, asyncio.Lock()):
            self.checkpoints.setdefault(run_id, {})[checkpoint_id] = (snapshot.copy_snapshot(), info)

        logger.debug("Checkpoint saved", run_id=run_id, checkpoint_id=checkpoint_id, messages=info.message_count)
        return info

    async def load(self, run_id: str, checkpoint_id: str) -> Optional[ContextSnapshot]:
        lock = self._locks.get(run_id)
        if lock is None:
            return None
        async with lock:
            entry = self.checkpoints.get(run_id, {}).get(checkpoint_id)
        if entry is None:
            return None
        return entry[0].copy_snapshot()

    async def list(self, run_id: str) -> List[CheckpointInfo]:
        lock = self._locks.get(run_id)
        if lock is None:
            return []
        async with lock:
            infos = [info for _, info in self.checkpoints.get(run_id, {}).values()]
        return sorted(infos, key=lambda info: info.created_at)

    async def delete(self, run_id: str, checkpoint_id: str) -> bool:
        lock = self._locks.get(run_id)
        if lock is None:
            return False
        async with lock:
            run_checkpoints = self.checkpoints.get(run_id)
            if run_checkpoints is None or checkpoint_id not in run_checkpoints:
                return False
            del run_checkpoints[checkpoint_id]
            if not run_checkpoints:
                # Last checkpoint of the run; drop the run entirely
                del self.checkpoints[run_id]
                self._locks.pop(run_id, None)
            return True


class FileCheckpointStore(CheckpointStore):
    """Durable store laid out per run:

        <root>/<run id>/snapshots/<checkpoint id>.json
        <root>/<run id>/meta/<checkpoint id>.json

    Snapshots and metadata live in separate directories, so no checkpoint id
    can name another checkpoint's file. ``list`` reads only the metadata
    files. A save writes the snapshot first and its metadata last, and a
    delete removes them in the opposite order; a listed checkpoint therefore
    always has a snapshot. File I/O runs in a worker thread.
    """

    SUFFIX = ".json"
    SNAPSHOT_DIR = "snapshots"
    META_DIR = "meta"

    def __init__(self, root: Path, estimator: Optional[TokenEstimator] = None):
        self.root = Path(root)
        self.estimator = estimator or DefaultTokenEstimator()
        self._locks: Dict[str, asyncio.Lock] = {}

    def _run_dir(self, run_id: str) -> Path:
        self._check_segment(run_id, run_id, None)
        return self.root / run_id

    def _paths(self, run_id: str, checkpoint_id: str) -> Tuple[Path, Path]:
        _require_ids(run_id, checkpoint_id)
        self._check_segment(checkpoint_id, run_id, checkpoint_id)
        run_dir = self._run_dir(run_id)
        file_name = f"{checkpoint_id}{self.SUFFIX}"
        return run_dir / self.SNAPSHOT_DIR / file_name, run_dir / self.META_DIR / file_name

    @staticmethod
    def _check_segment(value: str, run_id: str, checkpoint_id: Optional[str]):
        if "/" in value or "\\" in value or value in {".", ".."}:
            raise CheckpointError(f"Invalid path segment: {value!r}", run_id, checkpoint_id)

    @staticmethod
    def _write_atomic(path: Path, text: str):
        path.parent.mkdir(parents=True, exist_ok=True)
        temp_path = path.with_name(path.name + ".tmp")
        temp_path.write_text(text, encoding="utf-8")
        temp_path.replace(path)

    def _write_checkpoint(self, snapshot_path: Path, meta_path: Path, snapshot: ContextSnapshot, info: CheckpointInfo):
        self._write_atomic(snapshot_path, snapshot.model_dump_json())
        self._write_atomic(meta_path, info.model_dump_json())

    @staticmethod
    def _read_snapshot(snapshot_path: Path) -> Optional[ContextSnapshot]:
        try:
            text = snapshot_path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        return ContextSnapshot.model_validate_json(text)

    def _read_infos(self, meta_dir: Path) -> List[CheckpointInfo]:
        if not meta_dir.is_dir():
            return []
        return [
            CheckpointInfo.model_validate_json(path.read_text(encoding="utf-8"))
            for path in meta_dir.glob(f"*{self.SUFFIX}")
        ]

    @staticmethod
    def _remove_checkpoint(snapshot_path: Path, meta_path: Path) -> bool:
        meta_path.unlink(missing_ok=True)
        existed = snapshot_path.exists()
        snapshot_path.unlink(missing_ok=True)
        return existed

    async def save(self, run_id: str, checkpoint_id: str, snapshot: ContextSnapshot) -> CheckpointInfo:
        snapshot_path, meta_path = self._paths(run_id, checkpoint_id)
        if snapshot is None:
            raise CheckpointError("snapshot is required", run_id, checkpoint_id)

        info = build_checkpoint_info(run_id, checkpoint_id, snapshot, self.estimator)
        async with self._locks.setdefault(run_id, asyncio.Lock()):
            await asyncio.to_thread(self._write_checkpoint, snapshot_path, meta_path, snapshot, info)

        logger.debug("Checkpoint written", path=str(snapshot_path), messages=info.message_count)
        return info

    async def load(self, run_id: str, checkpoint_id: str) -> Optional[ContextSnapshot]:
        snapshot_path, _ = self._paths(run_id, checkpoint_id)
        return await asyncio.to_thread(self._read_snapshot, snapshot_path)

    async def list(self, run_id: str) -> List[CheckpointInfo]:
        meta_dir = self._run_dir(run_id) / self.META_DIR
        infos = await asyncio.to_thread(self._read_infos, meta_dir)
        return sorted(infos, key=lambda info: (info.created_at, info.checkpoint_id))

    async def delete(self, run_id: str, checkpoint_id: str) -> bool:
        snapshot_path, meta_path = self._paths(run_id, checkpoint_id)
        lock = self._locks.get(run_id)
        if lock is None:
            # Nothing of this run is being written by this store
            return await asyncio.to_thread(self._remove_checkpoint, snapshot_path, meta_path)
        async with lock:
            return await asyncio.to_thread(self._remove_checkpoint, snapshot_path, meta_path)
