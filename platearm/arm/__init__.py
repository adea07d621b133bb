from .channel import CommandChannel, format_move_command
from .errors import CommandChannelError
from .execution import ExecutionLoop
from .state import ArmPosition, ArmState, round_half_down
