"""
Configuration system for the pose streaming application.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Literal, Optional

import yaml

from pose_stream.models.registry import MODEL_VARIANTS


@dataclass
class EngineConfig:
    """Inference engine configuration."""

    # Model variant: "stateful" threads recurrent state between calls
    variant: Literal["stateless", "stateful"] = "stateful"

    # Model file, resolved against model_dir; None uses the variant's bundled file
    model_file: Optional[str] = None

    device: Literal["cpu", "cuda", "directml", "coreml"] = "cpu"


@dataclass
class DataConfig:
    """Recorded sample resources."""

    acc_file: str = "acc_240521.json"
    ori_file: str = "ori_240521.json"

    # Bundled resources are copied into local_dir on first access
    asset_dir: Path = field(default_factory=lambda: Path("assets"))
    local_dir: Path = field(default_factory=lambda: Path("data/local"))


@dataclass
class StreamConfig:
    """Socket.IO stream configuration."""

    enabled: bool = True
    url: str = "http://143.248.143.65:5555/"
    event: str = "animation_data"
    connect_timeout: float = 5.0

    # Keep trying in the background when the server is not up at launch
    reconnect: bool = True
    reconnect_delay: float = 2.0


@dataclass
class LoopConfig:
    """Streaming loop configuration."""

    # 100 steps per second
    period_ms: float = 10.0
    initial_delay_ms: float = 1000.0

    # What to do with the cursor when a step fails
    failure_policy: Literal["skip", "retry"] = "skip"
    max_step_retries: int = 3

    # 0 disables the abort
    max_consecutive_failures: int = 0


@dataclass
class AppConfig:
    """Main application configuration."""

    model_dir: Path = field(default_factory=lambda: Path("assets"))

    engine: EngineConfig = field(default_factory=EngineConfig)
    data: DataConfig = field(default_factory=DataConfig)
    stream: StreamConfig = field(default_factory=StreamConfig)
    loop: LoopConfig = field(default_factory=LoopConfig)

    log_level: str = "INFO"
    show_status: bool = True

    @property
    def model_file(self) -> str:
        """Configured model file, or the default file of the configured variant."""
        if self.engine.model_file:
            return self.engine.model_file
        variant = MODEL_VARIANTS.get(self.engine.variant, MODEL_VARIANTS["stateful"])
        return variant.model_file

    @property
    def model_path(self) -> Path:
        return self.model_dir / self.model_file

    @classmethod
    def from_yaml(cls, path: Path) -> "AppConfig":
        """Load configuration from YAML file."""
        with open(path, "r") as f:
            data = yaml.safe_load(f) or {}

        config = cls()

        if "model_dir" in data:
            config.model_dir = Path(data["model_dir"])
        if "log_level" in data:
            config.log_level = data["log_level"]
        if "show_status" in data:
            config.show_status = bool(data["show_status"])

        if "engine" in data:
            config.engine = EngineConfig(**data["engine"])
        if "data" in data:
            data_section = dict(data["data"])
            for key in ("asset_dir", "local_dir"):
                if key in data_section:
                    data_section[key] = Path(data_section[key])
            config.data = DataConfig(**data_section)
        if "stream" in data:
            config.stream = StreamConfig(**data["stream"])
        if "loop" in data:
            config.loop = LoopConfig(**data["loop"])

        return config

    def to_yaml(self, path: Path) -> None:
        """Save configuration to YAML file."""

        def to_dict(obj):
            if hasattr(obj, "__dataclass_fields__"):
                return {k: to_dict(v) for k, v in obj.__dict__.items()}
            elif isinstance(obj, Path):
                return str(obj)
            return obj

        data = to_dict(self)

        with open(path, "w") as f:
            yaml.dump(data, f, default_flow_style=False, sort_keys=False)

    def validate(self) -> List[str]:
        """Validate configuration and return list of warnings/errors."""
        issues = []

        if not self.model_path.exists():
            issues.append(f"Model file does not exist: {self.model_path}")

        if self.engine.variant not in MODEL_VARIANTS:
            issues.append(f"Unknown model variant: {self.engine.variant}")

        if self.loop.period_ms <= 0:
            issues.append("Loop period must be positive")

        if self.loop.failure_policy not in ("skip", "retry"):
            issues.append(f"Unknown failure policy: {self.loop.failure_policy}")

        if self.loop.failure_policy == "retry" and self.loop.max_step_retries < 1:
            issues.append("Retry policy needs max_step_retries >= 1")

        if not self.stream.enabled:
            issues.append("Streaming disabled, results will only be logged")

        return issues
