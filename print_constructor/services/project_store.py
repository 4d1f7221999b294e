"""项目存储服务模块.

以键值形式在 SQLite 中保存序列化项目，供自动保存使用。
"""

from __future__ import annotations

from pathlib import Path
from typing import Optional

from sqlalchemy import create_engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from print_constructor.models.database import Base, ProjectRecord
from print_constructor.utils.constants import DATABASE_PATH
from print_constructor.utils.exceptions import StorageError
from print_constructor.utils.logger import setup_logger

logger = setup_logger(__name__)


class ProjectStore:
    """项目键值存储.

    管理 SQLite 数据库连接和会话，所有数据库异常转换为 StorageError。

    Attributes:
        db_path: 数据库文件路径
        engine: SQLAlchemy 引擎

    Example:
        >>> store = ProjectStore(tmp_path / "projects.db")
        >>> store.set("project_abc", serialized, product_type="stickers")
        >>> store.get("project_abc")
    """

    def __init__(self, db_path: Optional[Path] = None) -> None:
        """初始化项目存储.

        Args:
            db_path: 数据库文件路径，默认使用配置路径

        Raises:
            StorageError: 无法创建数据库
        """
        self.db_path = Path(db_path or DATABASE_PATH)

        try:
            self.db_path.parent.mkdir(parents=True, exist_ok=True)
            self.engine = create_engine(
                f"sqlite:///{self.db_path}",
                connect_args={"check_same_thread": False},
                echo=False,
            )
            Base.metadata.create_all(self.engine)
        except (OSError, SQLAlchemyError) as e:
            raise StorageError(f"无法初始化项目存储: {e}") from e

        self.SessionLocal = sessionmaker(
            bind=self.engine,
            autocommit=False,
            autoflush=False,
        )

        logger.debug(f"项目存储初始化完成: {self.db_path}")

    def get_session(self) -> Session:
        """获取数据库会话."""
        return self.SessionLocal()

    def set(self, key: str, value: str, product_type: Optional[str] = None) -> None:
        """写入或覆盖一条记录.

        Args:
            key: 存储键
            value: 序列化内容
            product_type: 产品类型（便于按类型检索）

        Raises:
            StorageError: 写入失败
        """
        try:
            with self.get_session() as session:
                record = session.get(ProjectRecord, key)
                if record is None:
                    record = ProjectRecord(key=key, value=value, product_type=product_type)
                    session.add(record)
                else:
                    record.value = value
                    record.product_type = product_type
                session.commit()
        except SQLAlchemyError as e:
            logger.error(f"保存项目失败: {key}, 错误: {e}")
            raise StorageError(f"保存项目失败: {key}") from e

    def get(self, key: str) -> Optional[str]:
        """读取记录内容，不存在时返回 None."""
        try:
            with self.get_session() as session:
                record = session.get(ProjectRecord, key)
                return record.value if record else None
        except SQLAlchemyError as e:
            raise StorageError(f"读取项目失败: {key}") from e

    def delete(self, key: str) -> bool:
        """删除记录.

        Returns:
            是否存在并删除
        """
        try:
            with self.get_session() as session:
                record = session.get(ProjectRecord, key)
                if record is None:
                    return False
                session.delete(record)
                session.commit()
                return True
        except SQLAlchemyError as e:
            raise StorageError(f"删除项目失败: {key}") from e

    def keys(self, product_type: Optional[str] = None) -> list[str]:
        """列出存储键.

        Args:
            product_type: 只列出指定产品类型
        """
        try:
            with self.get_session() as session:
                query = session.query(ProjectRecord.key)
                if product_type:
                    query = query.filter(ProjectRecord.product_type == product_type)
                return [row[0] for row in query.order_by(ProjectRecord.key).all()]
        except SQLAlchemyError as e:
            raise StorageError("列出项目失败") from e

    def close(self) -> None:
        """关闭数据库连接."""
        self.engine.dispose()
