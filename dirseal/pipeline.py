"""
File Transform Pipeline

Encrypts or decrypts a sequence of files in place. Each file is processed
completely, and independently, before the next one starts: fresh salt and
nonce, key derivation, seal or open, a write-verify-rename commit of the
new file, and only then removal of the consumed one.

A failure aborts the current file only. The file it was working on is left
as it was and the batch moves on.
"""

import logging
import os
import stat
import tempfile
import time
from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Any, Iterable, List, Optional

from .core import (
    Password,
    envelope_size,
    get_envelope_info,
    open_sealed,
    pack_envelope,
    seal,
    unpack_envelope,
)
from .errors import DirsealError, FileIOError
from .key_derivation import derive_key, generate_nonce, generate_salt, wipe_memory
from .secure_delete import remove_file

logger = logging.getLogger(__name__)

DEFAULT_MARKER_EXTENSION = ".enc"


class Mode(Enum):
    """Direction of a run, chosen once at startup."""
    ENCRYPT = "encrypt"
    DECRYPT = "decrypt"

    @property
    def past_tense(self) -> str:
        return f"{self.value}ed"


@dataclass
class FileResult:
    """Outcome of processing one file."""
    source_path: str
    mode: Mode
    success: bool = False
    skipped: bool = False
    output_path: Optional[str] = None
    error_category: Optional[str] = None
    error_message: Optional[str] = None
    start_time: Optional[float] = None
    end_time: Optional[float] = None
    input_size: Optional[int] = None
    output_size: Optional[int] = None

    @property
    def duration(self) -> Optional[float]:
        """Get processing duration in seconds."""
        if self.start_time and self.end_time:
            return self.end_time - self.start_time
        return None


def _read_file(path: str) -> bytes:
    try:
        with open(path, 'rb') as f:
            return f.read()
    except OSError as e:
        raise FileIOError(f"Error reading file {path}: {e}") from e


class Pipeline:
    """
    Sequential in-place encrypt/decrypt of a file set.

    The pipeline keeps no state between files other than its settings
    and the results list.
    """

    def __init__(
        self,
        mode: Mode,
        marker_extension: str = DEFAULT_MARKER_EXTENSION,
        secure_delete: bool = False,
        shred_passes: int = 1,
        overwrite: bool = False,
        dry_run: bool = False,
        exclude_paths: Iterable[str] = (),
        progress_callback: Optional[Callable] = None
    ):
        """
        Initialize the pipeline.

        Args:
            mode: Encrypt or decrypt
            marker_extension: Suffix appended to encrypted files
            secure_delete: Overwrite consumed files before removing them
            shred_passes: Overwrite passes when secure_delete is set
            overwrite: Replace an existing output file instead of failing
            dry_run: Report what would happen without touching files
            exclude_paths: Paths that must never be processed
            progress_callback: Called as (completed, total, result)
        """
        if not isinstance(mode, Mode):
            raise TypeError(f"mode must be a Mode, got {mode!r}")
        if not marker_extension:
            raise ValueError("marker_extension must not be empty")

        self.mode = mode
        self.marker_extension = marker_extension
        self.secure_delete = secure_delete
        self.shred_passes = shred_passes
        self.overwrite = overwrite
        self.dry_run = dry_run
        self.exclude_paths = {os.path.realpath(p) for p in exclude_paths}
        self.progress_callback = progress_callback
        self.results: List[FileResult] = []

    def has_marker(self, path: str) -> bool:
        return os.path.basename(path).endswith(self.marker_extension)

    def target_path(self, path: str) -> str:
        """Path of the file produced from ``path`` in the current mode."""
        if self.mode is Mode.ENCRYPT:
            return path + self.marker_extension
        if not self.has_marker(path):
            raise ValueError(f"{path} does not end with {self.marker_extension}")
        if os.path.basename(path) == self.marker_extension:
            raise FileIOError(f"Cannot derive an output name from {path}")
        return path[:-len(self.marker_extension)]

    def skip_reason(self, path: str) -> Optional[str]:
        """Why ``path`` must not be processed in this mode, if anything."""
        if os.path.realpath(path) in self.exclude_paths:
            return "excluded path"
        if self.mode is Mode.ENCRYPT and self.has_marker(path):
            return "already encrypted"
        if self.mode is Mode.DECRYPT and not self.has_marker(path):
            return f"no {self.marker_extension} extension"
        return None

    def process(self, paths: Iterable[str], password: Password) -> List[FileResult]:
        """
        Process files one at a time, in the order given.

        Args:
            paths: Candidate file paths
            password: Run password

        Returns:
            One result per path
        """
        self.results = []
        paths = list(paths)
        total = len(paths)

        for completed, path in enumerate(paths, start=1):
            result = self.process_file(path, password)
            self.results.append(result)

            if self.progress_callback:
                self.progress_callback(completed, total, result)

        return self.results

    def process_file(self, path: str, password: Password) -> FileResult:
        """Run one file through the pipeline, containing any error."""
        result = FileResult(source_path=path, mode=self.mode, start_time=time.time())

        reason = self.skip_reason(path)
        if reason:
            logger.info("Skipping %s (%s)", path, reason)
            result.skipped = True
            result.end_time = time.time()
            return result

        try:
            result.input_size = os.path.getsize(path)
            if self.dry_run:
                result.output_path = self._dry_run(path)
            elif self.mode is Mode.ENCRYPT:
                result.output_path = self.encrypt_one(path, password)
            else:
                result.output_path = self.decrypt_one(path, password)

            if not self.dry_run:
                result.output_size = os.path.getsize(result.output_path)
            result.success = True
            logger.info("Successfully %s %s", self.mode.past_tense, path)

        except DirsealError as e:
            result.error_category = e.category
            result.error_message = str(e)
            logger.error("Failed to %s %s [%s]: %s", self.mode.value, path, e.category, e)
        except OSError as e:
            result.error_category = FileIOError.category
            result.error_message = str(e)
            logger.error("Failed to %s %s [%s]: %s", self.mode.value, path, FileIOError.category, e)
        except MemoryError:
            result.error_category = FileIOError.category
            result.error_message = "Insufficient memory to process file"
            logger.error("Failed to %s %s [%s]: %s", self.mode.value, path, FileIOError.category,
                         result.error_message)

        result.end_time = time.time()
        return result

    def encrypt_one(self, path: str, password: Password) -> str:
        """
        Replace ``path`` with its envelope at ``path + marker``.

        Returns:
            Path of the written envelope
        """
        if self.has_marker(path):
            raise ValueError(f"Refusing to re-encrypt {path}")

        target = self.target_path(path)
        self._check_target(target)

        plaintext = _read_file(path)

        salt = generate_salt()
        key = derive_key(password, salt)
        try:
            nonce = generate_nonce()
            sealed = seal(key, nonce, plaintext)
        finally:
            wipe_memory(key)

        envelope = pack_envelope(salt, nonce, sealed)
        self._commit(path, target, envelope, envelope_size(len(plaintext)))
        return target

    def decrypt_one(self, path: str, password: Password) -> str:
        """
        Replace the envelope at ``path`` with its plaintext.

        Returns:
            Path of the written plaintext
        """
        target = self.target_path(path)
        self._check_target(target)

        salt, nonce, sealed = unpack_envelope(_read_file(path))

        key = derive_key(password, salt)
        try:
            plaintext = open_sealed(key, nonce, sealed)
        finally:
            wipe_memory(key)

        self._commit(path, target, plaintext, len(plaintext))
        return target

    def get_summary(self) -> Dict[str, Any]:
        """
        Get summary of the run.

        Returns:
            Dictionary with summary statistics
        """
        processed = [r for r in self.results if not r.skipped]
        successful = sum(1 for r in processed if r.success)

        return {
            'mode': self.mode.value,
            'total_files': len(self.results),
            'processed': len(processed),
            'successful': successful,
            'failed': len(processed) - successful,
            'skipped': len(self.results) - len(processed),
            'total_time': sum(r.duration or 0 for r in processed),
            'total_input_size': sum(r.input_size or 0 for r in processed if r.success),
            'total_output_size': sum(r.output_size or 0 for r in processed if r.success),
        }

    def get_failed_results(self) -> List[FileResult]:
        """Get list of failed files."""
        return [r for r in self.results if not r.success and not r.skipped]

    def get_successful_results(self) -> List[FileResult]:
        """Get list of successfully processed files."""
        return [r for r in self.results if r.success]

    def _check_target(self, target: str) -> None:
        if os.path.lexists(target) and not self.overwrite:
            raise FileIOError(f"Output file already exists: {target}")

    def _commit(self, source: str, target: str, data: bytes, expected_size: int) -> None:
        """Write ``target`` in full, verify it, then remove ``source``."""
        self._write_verified(source, target, data, expected_size)
        remove_file(source, secure=self.secure_delete, passes=self.shred_passes)

    def _write_verified(self, source: str, target: str, data: bytes, expected_size: int) -> None:
        directory = os.path.dirname(target) or '.'
        try:
            fd, tmp_path = tempfile.mkstemp(
                dir=directory,
                prefix=f".{os.path.basename(target)}.",
                suffix=".tmp"
            )
        except OSError as e:
            raise FileIOError(f"Error creating output file for {source}: {e}") from e

        try:
            with os.fdopen(fd, 'wb') as f:
                f.write(data)
                f.flush()
                os.fsync(f.fileno())

            # Keep the source's permission bits rather than mkstemp's 0600.
            os.chmod(tmp_path, stat.S_IMODE(os.stat(source).st_mode))

            written = os.path.getsize(tmp_path)
            if written != expected_size:
                raise FileIOError(
                    f"Short write for {target}: expected {expected_size} bytes, got {written}"
                )
            os.replace(tmp_path, target)
        except OSError as e:
            self._discard(tmp_path)
            raise FileIOError(f"Error writing {target}: {e}") from e
        except BaseException:
            self._discard(tmp_path)
            raise

    @staticmethod
    def _discard(tmp_path: str) -> None:
        try:
            os.remove(tmp_path)
        except FileNotFoundError:
            pass
        except OSError as e:
            logger.warning("Could not remove temporary file %s: %s", tmp_path, e)

    def _dry_run(self, path: str) -> str:
        target = self.target_path(path)
        self._check_target(target)
        if self.mode is Mode.DECRYPT:
            info = get_envelope_info(path)
            logger.info(
                "Would decrypt %s -> %s (%d bytes)", path, target, info['plaintext_size']
            )
        else:
            logger.info("Would encrypt %s -> %s", path, target)
        return target
