from typing import Any, Optional


class DatabricksClient:
    """Thin wrapper around databricks-connect for simple SQL execution.

    Relies on Databricks SDK configuration (env vars, ~/.databrickscfg profiles)
    to determine compute target. If host/token are provided, they override
    env/profile settings.

    databricks-connect is imported on connect(), so it is only required when
    the Databricks target is actually used.
    """

    def __init__(
        self,
        host: Optional[str] = None,
        token: Optional[str] = None,
    ) -> None:
        self._host = host
        self._token = token
        self._session: Any = None

    def connect(self) -> None:
        """Establish a DatabricksSession. Must be called before execute/fetchall."""
        if self._session is not None:
            raise RuntimeError("Already connected. Call close() before reconnecting.")

        from databricks.connect import DatabricksSession

        builder = DatabricksSession.builder

        if self._host:
            builder = builder.host(self._host)
        if self._token:
            builder = builder.token(self._token)

        self._session = builder.getOrCreate()

    def _require_session(self) -> Any:
        if self._session is None:
            raise RuntimeError("Not connected. Call connect() first.")
        return self._session

    def execute(self, sql_statement: str, args: Any = None) -> None:
        self._require_session().sql(sql_statement, args=args).collect()

    def fetchall(self, sql_statement: str, args: Any = None) -> list[dict[str, Any]]:
        rows = self._require_session().sql(sql_statement, args=args).collect()
        return [row.asDict() for row in rows]

    def close(self) -> None:
        if self._session is not None:
            try:
                self._session.stop()
            finally:
                self._session = None

    def __enter__(self) -> "DatabricksClient":
        self.connect()
        return self

    def __exit__(self, exc_type: Any, exc: Any, tb: Any) -> None:
        self.close()
