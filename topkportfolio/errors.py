class InvalidArgument(ValueError):
    """Raised when an operator receives input outside its contract."""
