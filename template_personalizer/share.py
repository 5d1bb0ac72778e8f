"""
Share dispatcher: native share, clipboard plus platform, download.

The dispatcher walks a fixed fallback chain and reports which strategy
delivered the artifact. Platform and clipboard access go through an
injected capabilities object so the chain can run against the desktop
helpers below or a test double.
"""

# Standard Library
import abc
import collections.abc
import dataclasses
import pathlib
import shutil
import subprocess
import urllib.parse
import webbrowser

# local repo modules
import template_personalizer as tp
import template_personalizer.config
import template_personalizer.errors
import template_personalizer.export


ShareRequest = tp.config.ShareRequest
ShareCancelled = tp.errors.ShareCancelled
ShareStrategyFailed = tp.errors.ShareStrategyFailed
ShareExhausted = tp.errors.ShareExhausted

OUTCOME_SUCCEEDED = tp.config.OUTCOME_SUCCEEDED
OUTCOME_CANCELLED = tp.config.OUTCOME_CANCELLED
OUTCOME_FAILED = tp.config.OUTCOME_FAILED
STRATEGY_NATIVE_SHARE = tp.config.STRATEGY_NATIVE_SHARE
STRATEGY_CLIPBOARD_AND_OPEN = tp.config.STRATEGY_CLIPBOARD_AND_OPEN
STRATEGY_DOWNLOAD_FALLBACK = tp.config.STRATEGY_DOWNLOAD_FALLBACK
STATUS_IDLE = tp.config.STATUS_IDLE
STATUS_SHARING = tp.config.STATUS_SHARING
STATUS_DONE = tp.config.STATUS_DONE
STATUS_ERROR = tp.config.STATUS_ERROR
PLATFORM_URLS = tp.config.PLATFORM_URLS
PLATFORM_NAMES = tp.config.PLATFORM_NAMES
DEFAULT_SHARE_TITLE = tp.config.DEFAULT_SHARE_TITLE

StatusCallback = collections.abc.Callable[[str], None]


@dataclasses.dataclass(frozen=True)
class ShareResult:
	outcome: str
	strategy: str
	image_copied: bool = False
	caption_copied: bool = False
	message: str = ""
	error: str | None = None
	exhausted: ShareExhausted | None = None

	@property
	def succeeded(self) -> bool:
		return self.outcome == OUTCOME_SUCCEEDED

	@property
	def cancelled(self) -> bool:
		return self.outcome == OUTCOME_CANCELLED

	def raise_for_outcome(self) -> None:
		"""
		Raise ShareExhausted when every strategy failed.
		"""
		if self.outcome != OUTCOME_FAILED:
			return
		if self.exhausted is not None:
			raise self.exhausted
		raise ShareExhausted(self.error or self.message)


class ShareCapabilities(abc.ABC):
	"""
	Platform operations the dispatcher relies on.

	native_share returns OUTCOME_SUCCEEDED or OUTCOME_CANCELLED (or raises
	ShareCancelled); any other return value or exception counts as a
	failure of that strategy. The clipboard methods return True on success.
	"""

	@abc.abstractmethod
	def native_share_available(self) -> bool:
		raise NotImplementedError

	@abc.abstractmethod
	def native_share(self, files: list[tuple[str, bytes]], title: str, text: str) -> str:
		raise NotImplementedError

	@abc.abstractmethod
	def copy_image_to_clipboard(self, data: bytes) -> bool:
		raise NotImplementedError

	@abc.abstractmethod
	def copy_text_to_clipboard(self, text: str) -> bool:
		raise NotImplementedError

	@abc.abstractmethod
	def open_external(self, url: str) -> None:
		raise NotImplementedError

	@abc.abstractmethod
	def trigger_download(self, data: bytes, filename: str) -> None:
		raise NotImplementedError


#============================================
def _run_clipboard_command(command: list[str], payload: bytes) -> bool:
	"""
	Pipe a payload into a clipboard command.

	Args:
		command: Command and arguments.
		payload: Bytes to write on stdin.

	Returns:
		True if the command exited cleanly.
	"""
	if shutil.which(command[0]) is None:
		return False
	try:
		result = subprocess.run(command, input=payload, capture_output=True, check=False, timeout=10)
	except (OSError, subprocess.TimeoutExpired):
		return False
	return result.returncode == 0


class DesktopShareCapabilities(ShareCapabilities):
	"""
	Desktop stand-ins: clipboard tools, the default browser and a
	download directory. There is no native share sheet on the desktop.
	"""

	IMAGE_COMMANDS = (
		["wl-copy", "--type", "image/png"],
		["xclip", "-selection", "clipboard", "-t", "image/png"],
	)
	TEXT_COMMANDS = (
		["wl-copy"],
		["xclip", "-selection", "clipboard"],
		["pbcopy"],
		["clip"],
	)

	def __init__(self, download_dir: pathlib.Path):
		self.download_dir = pathlib.Path(download_dir)
		self.downloaded: list[pathlib.Path] = []

	def native_share_available(self) -> bool:
		return False

	def native_share(self, files: list[tuple[str, bytes]], title: str, text: str) -> str:
		return OUTCOME_FAILED

	def copy_image_to_clipboard(self, data: bytes) -> bool:
		for command in self.IMAGE_COMMANDS:
			if _run_clipboard_command(list(command), data):
				return True
		return False

	def copy_text_to_clipboard(self, text: str) -> bool:
		payload = text.encode("utf-8")
		for command in self.TEXT_COMMANDS:
			if _run_clipboard_command(list(command), payload):
				return True
		return False

	def open_external(self, url: str) -> None:
		if not webbrowser.open(url, new=2):
			raise ShareStrategyFailed(f"No browser accepted {url}")

	def trigger_download(self, data: bytes, filename: str) -> None:
		path = tp.export.write_artifact(self.download_dir, filename, data)
		self.downloaded.append(path)


#============================================
def build_platform_url(platform: str, caption: str) -> str | None:
	"""
	Build the compose URL for a platform.

	Args:
		platform: Platform key, e.g. "twitter".
		caption: Caption text, percent-encoded into the URL when used.

	Returns:
		URL, or None when the platform has no web compose endpoint.
	"""
	key = platform.lower()
	if key not in PLATFORM_URLS:
		raise ValueError(f"Unknown platform {platform!r}; expected one of {', '.join(PLATFORM_URLS)}")
	template = PLATFORM_URLS[key]
	if template is None:
		return None
	return template.replace("{caption}", urllib.parse.quote(caption, safe=""))


#============================================
def build_share_request(
	platform: str,
	artifact: bytes,
	caption: str,
	filename: str,
	title: str = DEFAULT_SHARE_TITLE,
) -> ShareRequest:
	"""
	Build a share request for a named platform.

	Args:
		platform: Platform key.
		artifact: PNG bytes.
		caption: Caption text.
		filename: Suggested filename.
		title: Share sheet title.

	Returns:
		ShareRequest.
	"""
	return ShareRequest(
		artifact=artifact,
		caption=caption,
		filename=filename,
		title=title,
		platform_url=build_platform_url(platform, caption),
		platform_name=PLATFORM_NAMES.get(platform.lower(), platform),
	)


#============================================
def build_share_message(
	platform_name: str,
	image_copied: bool,
	caption_copied: bool,
	opened: bool,
) -> str:
	"""
	Describe what the fallback path did so the user can finish by hand.

	Args:
		platform_name: Display name of the platform.
		image_copied: Image landed on the clipboard.
		caption_copied: Caption landed on the clipboard.
		opened: The platform page was opened (False means downloaded).

	Returns:
		Multi-line message.
	"""
	if opened:
		header = f"{platform_name} opened!"
	else:
		header = f"Image downloaded for {platform_name}."
	if image_copied and caption_copied:
		detail = f"Image and caption copied to clipboard.\nJust paste (Ctrl+V) in the {platform_name} post!"
	elif image_copied:
		detail = "Image copied to clipboard.\nPaste it (Ctrl+V) and add your message."
	elif caption_copied:
		detail = "Caption copied to clipboard.\nUpload the image and paste the caption."
	else:
		detail = "Please upload the image manually and use the provided caption."
	return f"{header}\n\n{detail}"


class ShareDispatcher:
	"""
	Runs the share fallback chain and broadcasts status transitions.

	Status moves idle -> sharing -> done | error; a cancelled share goes
	back to idle. One dispatch at a time per instance.
	"""

	def __init__(self, verbose: bool = False):
		self.status = STATUS_IDLE
		self.last_result: ShareResult | None = None
		self.verbose = verbose
		self._listeners: list[StatusCallback] = []

	def subscribe(self, callback: StatusCallback) -> collections.abc.Callable[[], None]:
		"""
		Register a status callback.

		Args:
			callback: Called with the new status on every transition.

		Returns:
			Disposer that removes the callback.
		"""
		self._listeners.append(callback)

		def unsubscribe() -> None:
			if callback in self._listeners:
				self._listeners.remove(callback)

		return unsubscribe

	def _set_status(self, status: str) -> None:
		self.status = status
		for listener in list(self._listeners):
			# a listener removed earlier in this broadcast is skipped
			if listener in self._listeners:
				listener(status)

	def _log(self, message: str) -> None:
		if self.verbose:
			print(message)

	def reset(self) -> None:
		self.last_result = None
		self._set_status(STATUS_IDLE)

	def _try_native_share(self, request: ShareRequest, capabilities: ShareCapabilities) -> ShareResult | None:
		try:
			available = capabilities.native_share_available()
		except Exception as error:
			self._log(f"Native share check failed: {error}")
			return None
		if not available:
			self._log("Native share not available")
			return None
		self._log("Opening native share sheet")
		try:
			outcome = capabilities.native_share(
				[(request.filename, request.artifact)],
				request.title,
				request.caption,
			)
		except ShareCancelled:
			outcome = OUTCOME_CANCELLED
		except Exception as error:
			self._log(f"Native share failed: {error}")
			return None
		if outcome == OUTCOME_SUCCEEDED:
			return ShareResult(
				outcome=OUTCOME_SUCCEEDED,
				strategy=STRATEGY_NATIVE_SHARE,
				message=f"Shared to {request.platform_name}!",
			)
		if outcome == OUTCOME_CANCELLED:
			self._log("User cancelled share")
			return ShareResult(
				outcome=OUTCOME_CANCELLED,
				strategy=STRATEGY_NATIVE_SHARE,
				message="Share cancelled",
			)
		self._log(f"Native share returned {outcome!r}")
		return None

	def _try_copy(self, label: str, copy_func: collections.abc.Callable[[], bool]) -> bool:
		try:
			copied = bool(copy_func())
		except Exception as error:
			self._log(f"Could not copy {label}: {error}")
			return False
		if copied:
			self._log(f"{label.capitalize()} copied to clipboard")
		else:
			self._log(f"Could not copy {label}")
		return copied

	def _run_chain(self, request: ShareRequest, capabilities: ShareCapabilities) -> ShareResult:
		native_result = self._try_native_share(request, capabilities)
		if native_result is not None:
			return native_result

		self._log(f"Using clipboard fallback for {request.platform_name}")
		image_copied = self._try_copy(
			"image",
			lambda: capabilities.copy_image_to_clipboard(request.artifact),
		)
		caption_copied = self._try_copy(
			"caption",
			lambda: capabilities.copy_text_to_clipboard(request.caption),
		)
		opened = request.platform_url is not None
		try:
			if opened:
				self._log(f"Opening {request.platform_url}")
				capabilities.open_external(request.platform_url)
			else:
				self._log(f"No URL for {request.platform_name}; downloading {request.filename}")
				capabilities.trigger_download(request.artifact, request.filename)
		except Exception as error:
			description = str(error) or type(error).__name__
			exhausted = ShareExhausted(f"All share strategies failed: {description}", cause=error)
			exhausted.__cause__ = error
			return ShareResult(
				outcome=OUTCOME_FAILED,
				strategy=STRATEGY_DOWNLOAD_FALLBACK,
				image_copied=image_copied,
				caption_copied=caption_copied,
				message=(
					"Unable to share right now.\n"
					f"Download the image and post it to {request.platform_name} manually."
				),
				error=description,
				exhausted=exhausted,
			)
		return ShareResult(
			outcome=OUTCOME_SUCCEEDED,
			strategy=STRATEGY_CLIPBOARD_AND_OPEN,
			image_copied=image_copied,
			caption_copied=caption_copied,
			message=build_share_message(request.platform_name, image_copied, caption_copied, opened),
		)

	def dispatch(self, request: ShareRequest, capabilities: ShareCapabilities) -> ShareResult:
		"""
		Deliver an artifact through the first strategy that works.

		Args:
			request: Artifact, caption and target.
			capabilities: Platform operations.

		Returns:
			ShareResult.
		"""
		self._set_status(STATUS_SHARING)
		result = self._run_chain(request, capabilities)
		self.last_result = result
		if result.outcome == OUTCOME_SUCCEEDED:
			self._set_status(STATUS_DONE)
		elif result.outcome == OUTCOME_CANCELLED:
			self._set_status(STATUS_IDLE)
		else:
			self._set_status(STATUS_ERROR)
		return result
