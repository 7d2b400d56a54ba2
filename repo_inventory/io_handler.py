"""Writing the snapshot and error JSON files."""

import json
import os
from pathlib import Path
from typing import Any, Optional, Sequence

from loguru import logger

from .exceptions import WriteError
from .models import FetchError, InventorySnapshot


class OutputHandler:
    """Handler for the run's output files."""

    @staticmethod
    def write_json(data: Any, output_path: str) -> None:
        """Replace ``output_path`` with ``data`` as JSON.

        The document is written to a temporary sibling first and moved over
        the destination, so readers see the old file or the new one, never
        a partial write. The parent directory must already exist.

        Raises:
            WriteError: if the file could not be written
        """
        path = Path(output_path)
        temp_file = path.with_name(f".{path.name}.{os.getpid()}.tmp")
        try:
            with open(temp_file, 'w', encoding='utf-8') as f:
                json.dump(data, f, indent=2, ensure_ascii=False)
                f.write('\n')
                f.flush()
                os.fsync(f.fileno())

            # Atomic rename
            temp_file.replace(path)
        except (OSError, TypeError, ValueError) as e:
            try:
                temp_file.unlink()
            except OSError:
                pass
            raise WriteError(f"Error writing {output_path}: {e}", path=str(output_path)) from e

    @staticmethod
    def persist(snapshot: InventorySnapshot, errors: Sequence[FetchError],
                snapshot_path: str, error_path: str) -> None:
        """Write the snapshot and the error list, overwriting both files.

        The error file is written even when the snapshot write fails.

        Raises:
            WriteError: the first write that failed
        """
        failure: Optional[WriteError] = None

        try:
            logger.info(f"Saving {len(snapshot)} repositories to: {snapshot_path}")
            OutputHandler.write_json(snapshot.to_list(), snapshot_path)
            logger.info(f"Successfully saved repositories to {snapshot_path}")
        except WriteError as e:
            logger.error(str(e))
            failure = e

        try:
            logger.info(f"Saving {len(errors)} fetch errors to: {error_path}")
            OutputHandler.write_json([error.to_dict() for error in errors], error_path)
        except WriteError as e:
            logger.error(str(e))
            failure = failure or e

        if failure is not None:
            raise failure
