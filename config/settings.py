"""
统一配置模块
- 配置文件: config/share_config.json（可调参数）
- 本地覆盖: config/share_config.local.json（本地私密配置）
- 环境变量优先覆盖（DATA_DIR / PORT 等）
"""

import os
import json
from pathlib import Path
from dataclasses import dataclass
from typing import Dict, Any, Optional
from dotenv import load_dotenv

load_dotenv()

# 加载 config/share_config.json + config/share_config.local.json（本地覆盖）
_CONFIG_PATH = Path(__file__).parent / "share_config.json"
_LOCAL_CONFIG_PATH = Path(__file__).parent / "share_config.local.json"

# 打包进 share_api 的前端产物
_DEFAULT_DIST_DIR = Path(__file__).resolve().parents[1] / "share_api" / "web" / "dist"


def _load_json(path: Path) -> Dict[str, Any]:
    if not path.exists():
        return {}
    with open(path, "r", encoding="utf-8") as f:
        return json.load(f)


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    result = base.copy()
    for key, value in override.items():
        if key in result and isinstance(result[key], dict) and isinstance(value, dict):
            result[key] = _deep_merge(result[key], value)
        else:
            result[key] = value
    return result


_RAW_CONFIG: Dict[str, Any] = _load_json(_CONFIG_PATH)
if _LOCAL_CONFIG_PATH.exists():
    _RAW_CONFIG = _deep_merge(_RAW_CONFIG, _load_json(_LOCAL_CONFIG_PATH))


def _section(name: str) -> Dict[str, Any]:
    return _RAW_CONFIG.get(name) or {}


@dataclass
class ServerSettings:
    """HTTP 服务配置"""
    host: str = "0.0.0.0"
    port: int = 8080


@dataclass
class StorageSettings:
    """数据目录与数据库；data_dir 是所有落盘路径的唯一来源"""
    data_dir: Path = Path("./data")
    database_url: Optional[str] = None
    database_filename: str = "siyuan-share.db"

    @property
    def db_url(self) -> str:
        if self.database_url:
            return self.database_url
        return f"sqlite:///{self.data_dir / self.database_filename}"


@dataclass
class BootstrapSettings:
    """首用户引导令牌"""
    token_ttl_minutes: int = 15
    token_filename: str = "bootstrap_token.txt"


@dataclass
class ShareSettings:
    """分享规则：密码、有效期、分页、引用预览"""
    min_password_length: int = 4
    min_expire_days: int = 1
    max_expire_days: int = 365
    default_page_size: int = 10
    max_page_size: int = 100
    preview_length: int = 30


@dataclass
class StaticSettings:
    """SPA 静态资源目录"""
    dist_dir: Path = _DEFAULT_DIST_DIR


class Settings:
    def __init__(self):
        self.env = os.getenv("SHARE_ENV", "dev")
        self.version = "v1"

        sv = _section("server")
        self.server = ServerSettings(
            host=os.getenv("API_HOST") or str(sv.get("host", "0.0.0.0")),
            port=int(os.getenv("PORT") or sv.get("port", 8080)),
        )

        st = _section("storage")
        self.storage = StorageSettings(
            data_dir=Path(os.getenv("DATA_DIR") or st.get("data_dir") or "./data"),
            database_url=os.getenv("SHARE_DATABASE_URL") or st.get("database_url") or None,
            database_filename=str(st.get("database_filename", "siyuan-share.db")),
        )

        bs = _section("bootstrap")
        self.bootstrap = BootstrapSettings(
            token_ttl_minutes=int(bs.get("token_ttl_minutes", 15)),
            token_filename=str(bs.get("token_filename", "bootstrap_token.txt")),
        )

        sh = _section("share")
        self.share = ShareSettings(
            min_password_length=int(sh.get("min_password_length", 4)),
            min_expire_days=int(sh.get("min_expire_days", 1)),
            max_expire_days=int(sh.get("max_expire_days", 365)),
            default_page_size=int(sh.get("default_page_size", 10)),
            max_page_size=int(sh.get("max_page_size", 100)),
            preview_length=int(sh.get("preview_length", 30)),
        )

        sa = _section("static")
        dist = os.getenv("SHARE_DIST_DIR") or sa.get("dist_dir")
        self.static = StaticSettings(dist_dir=Path(dist) if dist else _DEFAULT_DIST_DIR)

    @property
    def data_dir(self) -> Path:
        return self.storage.data_dir

    @property
    def is_prod(self) -> bool:
        return self.env == "prod"

    def print_info(self):
        print(f"""
========== Share API Config ==========
Env:       {self.env}
Listen:    {self.server.host}:{self.server.port}
Data dir:  {self.storage.data_dir.resolve()}
Database:  {self.storage.db_url}
Dist dir:  {self.static.dist_dir}
======================================
""")


settings = Settings()
