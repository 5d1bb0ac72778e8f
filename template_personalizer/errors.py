"""
Exception types for layout and sharing.
"""


class PersonalizerError(Exception):
	pass


class InvalidGeometry(PersonalizerError, ValueError):
	"""
	Surface or template dimensions are zero or negative.
	"""


class InvalidOverlaySpec(PersonalizerError, ValueError):
	"""
	An overlay carries out-of-range values.
	"""

	def __init__(self, index: int, message: str):
		self.index = index
		super().__init__(f"overlay {index}: {message}")


class ShareCancelled(PersonalizerError):
	"""
	The user dismissed the native share sheet.
	"""


class ShareStrategyFailed(PersonalizerError):
	"""
	A single delivery strategy failed; the chain moves on.
	"""


class ShareExhausted(PersonalizerError):
	"""
	Every delivery strategy failed.
	"""

	def __init__(self, message: str, cause: BaseException | None = None):
		self.cause = cause
		super().__init__(message)
