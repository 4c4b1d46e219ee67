"""
扫描配置

所有参数统一为 key:value 格式，保存到 JSON 文件
"""
import json
import math
from dataclasses import dataclass, field
from typing import Dict, Any, List, Optional
from pathlib import Path

MIN_SCAN_INTERVAL = 1
MAX_SCAN_INTERVAL = 10

# 人员标签始终参与过滤，配置只能追加
PERSON_LABEL = "person"


def clamp_interval(value: Any) -> int:
    """把扫描间隔限制在 [1, 10] 秒（先按浮点数限制范围，再取整）

    Raises:
        ValueError: 无法转换为数字
    """
    seconds = float(value)
    if math.isnan(seconds):
        raise ValueError(f"扫描间隔不是数字: {value!r}")
    return int(max(MIN_SCAN_INTERVAL, min(MAX_SCAN_INTERVAL, seconds)))


def normalize_person_labels(value: Any) -> List[str]:
    """整理人员标签列表：去空白、去重，并保证包含 "person"

    Args:
        value: 列表，或逗号分隔的字符串
    """
    if isinstance(value, str):
        value = value.split(",")
    elif not isinstance(value, (list, tuple)):
        value = []

    labels = [PERSON_LABEL]
    for label in value:
        label = str(label).strip().lower()
        if label and label not in labels:
            labels.append(label)
    return labels


def _positive_seconds(value: Any) -> float:
    """转换为正的有限秒数

    Raises:
        ValueError: 无法转换、非正数或无穷大
    """
    seconds = float(value)
    if not math.isfinite(seconds) or seconds <= 0:
        raise ValueError(f"必须是正数: {value!r}")
    return seconds


@dataclass
class ScanConfig:
    """扫描统一配置

    所有参数都保存在一个 JSON 文件中
    """
    # 扫描参数
    scan_interval: int = 3                  # 扫描间隔（秒），范围 1-10
    classify_timeout: float = 30            # 单次分类超时（秒）

    # 人员过滤（"person" 始终包含在内）
    person_labels: List[str] = field(default_factory=lambda: [PERSON_LABEL])

    # 展示相关
    detected_flash_seconds: float = 1.0     # "已识别"提示持续时间（秒）

    # 日志目录
    log_dir: str = "logs"

    # 配置文件路径（内部使用）
    _config_file: Optional[str] = field(default=None, repr=False)

    def __post_init__(self):
        self.scan_interval = clamp_interval(self.scan_interval)
        self.person_labels = normalize_person_labels(self.person_labels)

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典"""
        return {
            "scan_interval": self.scan_interval,
            "classify_timeout": self.classify_timeout,
            "person_labels": self.person_labels,
            "detected_flash_seconds": self.detected_flash_seconds,
            "log_dir": self.log_dir
        }

    @classmethod
    def from_dict(cls, config_dict: Dict[str, Any], config_file: str = None) -> 'ScanConfig':
        """从字典创建配置

        Args:
            config_dict: 配置字典
            config_file: 配置文件路径（用于后续自动保存）

        Returns:
            ScanConfig 实例
        """
        # 辅助函数：安全转换
        def to_interval(value, default):
            try:
                return clamp_interval(value)
            except (ValueError, TypeError):
                return default

        def to_seconds(value, default):
            try:
                return _positive_seconds(value)
            except (ValueError, TypeError):
                return default

        return cls(
            scan_interval=to_interval(config_dict.get("scan_interval"), 3),
            classify_timeout=to_seconds(config_dict.get("classify_timeout"), 30),
            person_labels=normalize_person_labels(config_dict.get("person_labels")),
            detected_flash_seconds=to_seconds(config_dict.get("detected_flash_seconds"), 1.0),
            log_dir=config_dict.get("log_dir", "logs"),
            _config_file=config_file
        )

    def save(self):
        """保存配置到文件"""
        if self._config_file:
            config_file = Path(self._config_file)
            config_file.parent.mkdir(parents=True, exist_ok=True)

            with open(config_file, "w", encoding="utf-8") as f:
                json.dump(self.to_dict(), f, ensure_ascii=False, indent=2)

    def update(self, **kwargs):
        """更新配置并自动保存

        先转换全部字段，全部合法后才生效；任一字段不合法时配置保持不变

        Args:
            **kwargs: 要更新的配置项，未知字段忽略

        Raises:
            ValueError: 数值字段无法转换
        """
        changes = {}
        for key, value in kwargs.items():
            if not hasattr(self, key) or key.startswith("_"):
                continue

            # 类型转换：前端传来的可能是字符串
            if key == "scan_interval":
                value = clamp_interval(value)
            elif key in ["classify_timeout", "detected_flash_seconds"]:
                value = _positive_seconds(value)
            elif key == "person_labels":
                value = normalize_person_labels(value)

            changes[key] = value

        for key, value in changes.items():
            setattr(self, key, value)

        # 自动保存
        self.save()

    @classmethod
    def load(cls, config_file: str) -> 'ScanConfig':
        """从文件加载配置

        Args:
            config_file: 配置文件路径

        Returns:
            ScanConfig 实例
        """
        config_path = Path(config_file)

        # 如果文件不存在，创建默认配置文件
        if not config_path.exists():
            default_config = cls()
            default_config._config_file = str(config_file)
            default_config.save()
            return default_config

        # 加载配置
        try:
            with open(config_path, "r", encoding="utf-8") as f:
                config_dict = json.load(f)
        except (OSError, ValueError):
            config_dict = {}

        if not isinstance(config_dict, dict):
            config_dict = {}

        return cls.from_dict(config_dict, str(config_file))
