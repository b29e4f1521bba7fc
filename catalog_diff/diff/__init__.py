from catalog_diff.diff.differ import RowDiffer
from catalog_diff.diff.models import Change, ChangeDocument

__all__ = ["Change", "ChangeDocument", "RowDiffer"]
