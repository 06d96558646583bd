"""Storage interface for loan applications.

The pricing engine never imports this module. Only the wizard's submit step
and the admin dashboard talk to storage, and only through these methods.
"""
from abc import ABC, abstractmethod
from typing import Any, Dict, List, Tuple


class ApplicationRepository(ABC):
    """Narrow interface over wherever applications are kept."""

    @abstractmethod
    def fetch_applications(self) -> Tuple[List[Dict[str, Any]], Dict[str, Any]]:
        """Return (rows, stats). Rows carry a 'rowIndex' key; stats may be empty."""
        pass

    @abstractmethod
    def update_application(self, row_index: int, patch: Dict[str, Any]) -> None:
        """Apply a patch ({'status': ..., 'notes': ...}) to one application.

        Raises:
            ApplicationNotFoundError: If no application has that row index.
            RepositoryError: If the store cannot be written.
        """
        pass

    @abstractmethod
    def submit_application(self, payload: Dict[str, Any]) -> None:
        """Store a new application built by submission.build_payload."""
        pass

    @abstractmethod
    def fetch_borrowers(self) -> List[Dict[str, Any]]:
        """Return known borrowers as dicts with borrowerId, fullName, email, previousCollateral."""
        pass
