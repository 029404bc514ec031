"""chainQL deferred validation: operator and structural checks run by ``to_sql``."""
from chainql.validate.validator import StatementValidator

__all__ = ["StatementValidator"]
