"""
文档存储模块
按用户保存地图文档和导航状态文档

目录结构（JsonFileStore）：
    <data_dir>/<app_id>/users/<user_id>/state.json
    <data_dir>/<app_id>/users/<user_id>/map_data/grid.json
"""

import copy
import json
import logging
import os
import tempfile
import threading
from pathlib import Path
from typing import Any, Dict, Optional

from indoor_nav import config

logger = logging.getLogger(__name__)


class DocumentStore:
    """文档存储基类

    load_* 在文档不存在时返回None；merge_state 按顶层字段合并，
    值为None的字段被显式写入为None（表示“未设置”）。
    """

    def load_grid(self, user_id: str) -> Optional[Dict[str, Any]]:
        raise NotImplementedError

    def save_grid(self, user_id: str, document: Dict[str, Any]):
        raise NotImplementedError

    def load_state(self, user_id: str) -> Optional[Dict[str, Any]]:
        raise NotImplementedError

    def merge_state(self, user_id: str, fields: Dict[str, Any]):
        raise NotImplementedError


class MemoryStore(DocumentStore):
    """内存存储（测试和离线回放用）"""

    def __init__(self):
        self._grids: Dict[str, Dict[str, Any]] = {}
        self._states: Dict[str, Dict[str, Any]] = {}
        self._lock = threading.Lock()

    def load_grid(self, user_id):
        with self._lock:
            document = self._grids.get(user_id)
            return copy.deepcopy(document) if document is not None else None

    def save_grid(self, user_id, document):
        with self._lock:
            self._grids[user_id] = copy.deepcopy(document)

    def load_state(self, user_id):
        with self._lock:
            document = self._states.get(user_id)
            return copy.deepcopy(document) if document is not None else None

    def merge_state(self, user_id, fields):
        with self._lock:
            self._states.setdefault(user_id, {}).update(copy.deepcopy(fields))


class JsonFileStore(DocumentStore):
    """JSON文件存储

    写入时先写临时文件再原子替换，读取到损坏文件时记录警告并视为
    文档不存在。

    Example:
        >>> store = JsonFileStore('data/store', app_id='default-app-id')
        >>> store.merge_state('user-1', {'currentLocation': {'dx': 20.0, 'dy': 20.0}})
    """

    def __init__(self, data_dir: str = config.DATA_DIR, app_id: str = config.APP_ID):
        self.data_dir = Path(data_dir)
        self.app_id = app_id
        self._lock = threading.Lock()

    def _user_dir(self, user_id: str) -> Path:
        if not user_id or '/' in user_id or '\\' in user_id or user_id in ('.', '..'):
            raise ValueError(f"无效的用户ID: {user_id!r}")
        return self.data_dir / self.app_id / 'users' / user_id

    def grid_path(self, user_id: str) -> Path:
        return self._user_dir(user_id) / 'map_data' / 'grid.json'

    def state_path(self, user_id: str) -> Path:
        return self._user_dir(user_id) / 'state.json'

    def load_grid(self, user_id):
        with self._lock:
            return self._read(self.grid_path(user_id))

    def save_grid(self, user_id, document):
        with self._lock:
            self._write(self.grid_path(user_id), document)
        logger.info(f"地图已保存: {user_id}")

    def load_state(self, user_id):
        with self._lock:
            return self._read(self.state_path(user_id))

    def merge_state(self, user_id, fields):
        with self._lock:
            path = self.state_path(user_id)
            document = self._read(path) or {}
            document.update(fields)
            self._write(path, document)
        logger.debug(f"导航状态已合并: {user_id} {sorted(fields)}")

    def _read(self, path: Path) -> Optional[Dict[str, Any]]:
        if not path.exists():
            return None
        try:
            with open(path, 'r', encoding='utf-8') as f:
                document = json.load(f)
        except (OSError, ValueError) as e:
            logger.warning(f"读取文档失败，视为不存在: {path} ({e})")
            return None

        if not isinstance(document, dict):
            logger.warning(f"文档格式错误，视为不存在: {path}")
            return None
        return document

    def _write(self, path: Path, document: Dict[str, Any]):
        path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=path.name, suffix='.tmp')
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as f:
                json.dump(document, f, indent=2)
            os.replace(tmp_name, path)
        except BaseException:
            if os.path.exists(tmp_name):
                os.unlink(tmp_name)
            raise
