"""
Neural Architect Core Package.

This package contains the simulation side of the Neural Architect sandbox:

- Activation registry (functions and output-based derivatives)
- Feedforward network model with forward pass, backpropagation and updates
- Animation scheduler (NONE/FORWARD/BACKWARD/UPDATING) and turbo batches
- Simulation facade, asyncio runner and YAML architecture compiler
- Stats helpers and the tutoring collaborator contract
"""

__version__ = "0.1.0"

from .enums import Activation, Phase, Action, SpeedMode
from .errors import NexusError, ConfigError, DimensionError, ExternalServiceFailure
from .config import SimulatorConfig, ViewConfig
from .activations import ACTIVATIONS, ActivationDef, next_activation, parse_activation
from .network import Network, NetworkSnapshot
from .scheduler import SchedulerState, tick, settle
from .simulation import Simulation
from .compiler import compile_from_yaml, compile_from_file, compile_from_dict, build_simulation
from .metrics import squared_error_loss, LossHistory, architecture_descriptor, stats_snapshot
