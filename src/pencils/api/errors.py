class DecodeError(ValueError):
    """A 2xx response whose body could not be decoded into the target.

    The request itself completed; ``response`` is the ApiResponse it produced.
    """

    def __init__(self, message: str, response=None):
        super().__init__(message)
        self.response = response
