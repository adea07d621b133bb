class ResolutionError(Exception):
  """ Raised when a plate name or well identifier cannot be resolved to a location. """

  def __init__(self, plate: str, well: str, reason: str):
    super().__init__(f"Cannot resolve well '{well}' on plate '{plate}': {reason}")
    self.plate = plate
    self.well = well
