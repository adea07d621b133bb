class CommandChannelError(Exception):
  """ Raised when a command could not be written to the arm controller. The arm state is not
  updated for the command that failed. """
