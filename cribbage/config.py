"""cribbage/config.py"""

from typing import List, Dict, TypeVar, Optional, Union
from dataclasses import dataclass, field
import os
import logging
import yaml
import re  # For parsing human-readable sizes

T = TypeVar("T")


# Helper to get nested dict values safely
def get_nested(data: Dict, keys: List[str], default: T) -> T:
    """Safely retrieve a nested value from a dict."""
    current = data
    for key in keys:
        if isinstance(current, dict) and key in current:
            current = current.get(key)
        else:
            return default
    # Handle case where the final value retrieved is None, but default isn't None
    if current is None and default is not None:
        return default
    return current  # type: ignore


def parse_human_readable_size(size_str: Union[str, int]) -> int:
    """Parses a human-readable size string (e.g., '1GB', '500MB', '1024') into bytes."""
    if isinstance(size_str, int):
        return size_str
    if not isinstance(size_str, str):
        raise ValueError(f"Invalid size format: {size_str}. Must be int or string.")

    size_str = size_str.upper().strip()
    match = re.fullmatch(r"(\d+)\s*(KB|MB|GB)?", size_str)
    if not match:
        raise ValueError(f"Invalid size format: {size_str}")

    value = int(match.group(1))
    unit = match.group(2)

    if unit == "KB":
        value *= 1024
    elif unit == "MB":
        value *= 1024**2
    elif unit == "GB":
        value *= 1024**3
    return value


def parse_seconds(value: Union[str, int, float], name: str) -> float:
    """Parses a non-negative duration in seconds."""
    try:
        seconds = float(value)
    except (TypeError, ValueError):
        raise ValueError(f"{name} must be a number of seconds. Got: {value}") from None
    if seconds < 0:
        raise ValueError(f"{name} must not be negative. Got: {value}")
    return seconds


@dataclass
class RulesConfig:
    winning_score: int = 120  # Game ends the instant a front peg reaches this
    pegging_limit: int = 31


@dataclass
class SchedulerConfig:
    turn_timeout_seconds: float = 30.0
    opponent_think_min_seconds: float = 1.0  # Artificial "thinking" delay range
    opponent_think_max_seconds: float = 2.0
    round_end_delay_seconds: float = 0.0  # Pause on ROUND_END before the next deal


@dataclass
class OpponentConfig:
    difficulty: str = "beginner"  # beginner | intermediate | expert
    seed: Optional[int] = None


@dataclass
class EvaluationConfig:
    num_games: int = 200
    strategy_a: str = "expert"
    strategy_b: str = "beginner"
    seed: Optional[int] = None


@dataclass
class LoggingConfig:
    log_level_file: str = "DEBUG"  # Logging level for the log file
    log_level_console: str = "WARNING"  # Logging level for the console
    log_dir: str = "logs"
    log_file_prefix: str = "cribbage"
    log_max_bytes: int = 9 * 1024 * 1024  # Can be a string like "9MB" in YAML
    log_backup_count: int = 10
    log_to_file: bool = True


@dataclass
class Config:
    rules: RulesConfig = field(default_factory=RulesConfig)
    scheduler: SchedulerConfig = field(default_factory=SchedulerConfig)
    opponent: OpponentConfig = field(default_factory=OpponentConfig)
    evaluation: EvaluationConfig = field(default_factory=EvaluationConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)
    _source_path: Optional[str] = None  # Internal field to store config path


def _validate(cfg: Config) -> Config:
    """Cross-field checks that a plain type check can't express."""
    if cfg.rules.winning_score <= 0:
        raise ValueError("rules.winning_score must be positive.")
    if cfg.rules.pegging_limit < 10:
        # Below ten a fresh count could start with no playable card
        raise ValueError("rules.pegging_limit must be at least 10.")
    if cfg.scheduler.opponent_think_min_seconds > cfg.scheduler.opponent_think_max_seconds:
        raise ValueError(
            "scheduler.opponent_think_min_seconds exceeds opponent_think_max_seconds."
        )
    if cfg.evaluation.num_games < 1:
        raise ValueError("evaluation.num_games must be at least 1.")
    return cfg


def load_config(
    config_path: str = "config.yaml",
) -> Optional[Config]:
    """Loads configuration from a YAML file."""
    try:
        with open(config_path, "r", encoding="utf-8") as f:
            config_dict = yaml.safe_load(f)
            if config_dict is None:
                print(
                    f"Warning: Config file '{config_path}' is empty or invalid. "
                    f"Using default configuration."
                )
                config_dict = {}

            rules_config = RulesConfig(
                winning_score=get_nested(
                    config_dict, ["rules", "winning_score"], RulesConfig.winning_score
                ),
                pegging_limit=get_nested(
                    config_dict, ["rules", "pegging_limit"], RulesConfig.pegging_limit
                ),
            )

            scheduler_config = SchedulerConfig(
                turn_timeout_seconds=parse_seconds(
                    get_nested(
                        config_dict,
                        ["scheduler", "turn_timeout_seconds"],
                        SchedulerConfig.turn_timeout_seconds,
                    ),
                    "scheduler.turn_timeout_seconds",
                ),
                opponent_think_min_seconds=parse_seconds(
                    get_nested(
                        config_dict,
                        ["scheduler", "opponent_think_min_seconds"],
                        SchedulerConfig.opponent_think_min_seconds,
                    ),
                    "scheduler.opponent_think_min_seconds",
                ),
                opponent_think_max_seconds=parse_seconds(
                    get_nested(
                        config_dict,
                        ["scheduler", "opponent_think_max_seconds"],
                        SchedulerConfig.opponent_think_max_seconds,
                    ),
                    "scheduler.opponent_think_max_seconds",
                ),
                round_end_delay_seconds=parse_seconds(
                    get_nested(
                        config_dict,
                        ["scheduler", "round_end_delay_seconds"],
                        SchedulerConfig.round_end_delay_seconds,
                    ),
                    "scheduler.round_end_delay_seconds",
                ),
            )

            opponent_config = OpponentConfig(
                difficulty=str(
                    get_nested(
                        config_dict,
                        ["opponent", "difficulty"],
                        OpponentConfig.difficulty,
                    )
                ).lower(),
                seed=get_nested(config_dict, ["opponent", "seed"], OpponentConfig.seed),
            )

            evaluation_config = EvaluationConfig(
                num_games=get_nested(
                    config_dict,
                    ["evaluation", "num_games"],
                    EvaluationConfig.num_games,
                ),
                strategy_a=str(
                    get_nested(
                        config_dict,
                        ["evaluation", "strategy_a"],
                        EvaluationConfig.strategy_a,
                    )
                ).lower(),
                strategy_b=str(
                    get_nested(
                        config_dict,
                        ["evaluation", "strategy_b"],
                        EvaluationConfig.strategy_b,
                    )
                ).lower(),
                seed=get_nested(
                    config_dict, ["evaluation", "seed"], EvaluationConfig.seed
                ),
            )

            logging_config = LoggingConfig(
                log_level_file=get_nested(
                    config_dict,
                    ["logging", "log_level_file"],
                    LoggingConfig.log_level_file,
                ),
                log_level_console=get_nested(
                    config_dict,
                    ["logging", "log_level_console"],
                    LoggingConfig.log_level_console,
                ),
                log_dir=get_nested(
                    config_dict, ["logging", "log_dir"], LoggingConfig.log_dir
                ),
                log_file_prefix=get_nested(
                    config_dict,
                    ["logging", "log_file_prefix"],
                    LoggingConfig.log_file_prefix,
                ),
                log_max_bytes=parse_human_readable_size(
                    get_nested(
                        config_dict,
                        ["logging", "log_max_bytes"],
                        LoggingConfig.log_max_bytes,
                    )
                ),
                log_backup_count=get_nested(
                    config_dict,
                    ["logging", "log_backup_count"],
                    LoggingConfig.log_backup_count,
                ),
                log_to_file=get_nested(
                    config_dict,
                    ["logging", "log_to_file"],
                    LoggingConfig.log_to_file,
                ),
            )

            cfg = Config(
                rules=rules_config,
                scheduler=scheduler_config,
                opponent=opponent_config,
                evaluation=evaluation_config,
                logging=logging_config,
                _source_path=os.path.abspath(config_path),
            )
            return _validate(cfg)

    except FileNotFoundError:
        print(
            f"Warning: Config file '{config_path}' not found. Using default configuration."
        )
        return Config(_source_path=None)
    except (
        TypeError,
        KeyError,
        AttributeError,
        yaml.YAMLError,
        ValueError,  # For parse_human_readable_size or parse_seconds
    ) as e:
        print(
            f"Error loading or parsing config file '{config_path}': {e}. "
            f"Check config structure/types."
        )
        print("Using default configuration.")
        logging.getLogger(__name__).warning(
            "Falling back to default configuration after error: %s", e
        )
        return Config(_source_path=None)
    except IOError as e:
        print(f"Unexpected error loading config file '{config_path}': {e}")
        print("Using default configuration.")
        return Config(_source_path=None)
