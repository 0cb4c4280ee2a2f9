"""
Reduce worker configuration, read from the environment
"""

import os
from dataclasses import dataclass
from typing import Mapping, Optional

TRUE_VALUES = ('1', 'true', 'yes', 'on')


def _env_flag(env: Mapping[str, str], name: str, default: bool = False) -> bool:
    value = env.get(name)
    if value is None:
        return default
    return value.strip().lower() in TRUE_VALUES


@dataclass
class ReduceConfig:
    """Settings shared by every reduce task a worker runs"""
    intermediate_dir: str = '.'
    strict_decode: bool = False
    atomic_output: bool = False
    log_level: str = 'INFO'

    @classmethod
    def from_env(cls, env: Optional[Mapping[str, str]] = None) -> 'ReduceConfig':
        """
        Build config from MR_* environment variables

        Args:
            env: Mapping to read instead of os.environ

        Returns:
            ReduceConfig with defaults for unset variables
        """
        if env is None:
            env = os.environ
        return cls(
            intermediate_dir=env.get('MR_INTERMEDIATE_DIR', '.'),
            strict_decode=_env_flag(env, 'MR_STRICT_DECODE'),
            atomic_output=_env_flag(env, 'MR_ATOMIC_OUTPUT'),
            log_level=env.get('MR_LOG_LEVEL', 'INFO').upper(),
        )
