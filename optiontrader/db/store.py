"""SQLite data store for OptionTrader."""

import json
import sqlite3
import uuid
from datetime import date, datetime
from pathlib import Path
from typing import Any, Optional

from optiontrader.models import (
    Position,
    Quote,
    RiskParams,
    Strategy,
    SystemLog,
    TradeRecord,
    UserSettings,
)


def new_id() -> str:
    """Generate a new row identifier."""
    return str(uuid.uuid4())


def _ts(value: Optional[datetime]) -> Optional[str]:
    return value.isoformat() if value is not None else None


def _parse_ts(value: Optional[str]) -> Optional[datetime]:
    return datetime.fromisoformat(value) if value else None


class DataStore:
    """SQLite-based data store for OptionTrader."""

    REQUIRED_TABLES = [
        "trading_strategies",
        "positions",
        "trades",
        "user_settings",
        "system_logs",
        "market_data",
    ]

    # Columns that may be changed after a row is written
    POSITION_UPDATABLE = {
        "broker_order_id",
        "entry_price",
        "current_price",
        "exit_price",
        "pnl",
        "status",
        "closed_at",
    }
    TRADE_UPDATABLE = {
        "position_id",
        "broker_order_id",
        "status",
        "error_message",
        "executed_at",
    }

    def __init__(self, db_path: Path):
        """Initialize the data store.

        Args:
            db_path: Path to the SQLite database file.
        """
        self.db_path = db_path
        self._ensure_db_dir()
        self._init_schema()

    def _ensure_db_dir(self) -> None:
        """Ensure the database directory exists."""
        self.db_path.parent.mkdir(parents=True, exist_ok=True)

    def _get_connection(self) -> sqlite3.Connection:
        """Get a database connection."""
        conn = sqlite3.connect(self.db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def _init_schema(self) -> None:
        """Initialize database schema on first run."""
        conn = self._get_connection()
        try:
            cursor = conn.cursor()

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS trading_strategies (
                    id TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL,
                    name TEXT NOT NULL,
                    type TEXT NOT NULL,
                    instrument TEXT NOT NULL,
                    is_active INTEGER NOT NULL DEFAULT 0,
                    config TEXT NOT NULL DEFAULT '{}',
                    risk_params TEXT NOT NULL DEFAULT '{}',
                    created_at TEXT NOT NULL
                )
            """)

            # strategy_id is a weak reference: no foreign key
            cursor.execute("""
                CREATE TABLE IF NOT EXISTS positions (
                    id TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL,
                    strategy_id TEXT,
                    broker_order_id TEXT,
                    symbol TEXT NOT NULL,
                    instrument_type TEXT NOT NULL,
                    strike_price REAL NOT NULL,
                    expiry_date TEXT NOT NULL,
                    action TEXT NOT NULL,
                    quantity INTEGER NOT NULL,
                    entry_price REAL NOT NULL,
                    current_price REAL NOT NULL DEFAULT 0,
                    exit_price REAL,
                    pnl REAL NOT NULL DEFAULT 0,
                    status TEXT NOT NULL DEFAULT 'OPEN',
                    opened_at TEXT NOT NULL,
                    closed_at TEXT,
                    created_at TEXT NOT NULL
                )
            """)

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS trades (
                    id TEXT PRIMARY KEY,
                    user_id TEXT NOT NULL,
                    position_id TEXT,
                    broker_order_id TEXT,
                    order_type TEXT NOT NULL,
                    action TEXT NOT NULL,
                    quantity INTEGER NOT NULL,
                    price REAL NOT NULL,
                    status TEXT NOT NULL DEFAULT 'PENDING',
                    error_message TEXT,
                    executed_at TEXT,
                    created_at TEXT NOT NULL
                )
            """)

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS user_settings (
                    user_id TEXT PRIMARY KEY,
                    auto_trade_enabled INTEGER NOT NULL DEFAULT 0,
                    max_daily_loss REAL NOT NULL,
                    max_position_size REAL NOT NULL,
                    max_open_positions INTEGER NOT NULL,
                    notifications_enabled INTEGER NOT NULL DEFAULT 1
                )
            """)

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS system_logs (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    user_id TEXT NOT NULL,
                    log_type TEXT NOT NULL,
                    message TEXT NOT NULL,
                    metadata TEXT NOT NULL DEFAULT '{}',
                    created_at TEXT NOT NULL
                )
            """)

            cursor.execute("""
                CREATE TABLE IF NOT EXISTS market_data (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    symbol TEXT NOT NULL,
                    ltp REAL NOT NULL,
                    bid REAL NOT NULL DEFAULT 0,
                    ask REAL NOT NULL DEFAULT 0,
                    volume INTEGER NOT NULL DEFAULT 0,
                    oi INTEGER NOT NULL DEFAULT 0,
                    timestamp TEXT NOT NULL
                )
            """)

            cursor.execute(
                "CREATE INDEX IF NOT EXISTS idx_positions_user_status "
                "ON positions (user_id, status)"
            )
            cursor.execute(
                "CREATE INDEX IF NOT EXISTS idx_market_data_symbol "
                "ON market_data (symbol, timestamp)"
            )

            conn.commit()
        finally:
            conn.close()

    def get_tables(self) -> list[str]:
        """Get list of all tables in the database."""
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT name FROM sqlite_master WHERE type='table' AND name NOT LIKE 'sqlite_%'"
            )
            return [row["name"] for row in cursor.fetchall()]
        finally:
            conn.close()

    # ==================== Settings ====================

    def get_user_settings(self, user_id: str) -> Optional[UserSettings]:
        """Get the settings row for a user.

        Args:
            user_id: Owner of the settings.

        Returns:
            UserSettings if the user has saved settings, None otherwise.
        """
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT user_id, auto_trade_enabled, max_daily_loss, max_position_size,
                       max_open_positions, notifications_enabled
                FROM user_settings
                WHERE user_id = ?
                """,
                (user_id,),
            )
            row = cursor.fetchone()
            if row is None:
                return None
            return UserSettings(
                user_id=row["user_id"],
                auto_trade_enabled=bool(row["auto_trade_enabled"]),
                max_daily_loss=row["max_daily_loss"],
                max_position_size=row["max_position_size"],
                max_open_positions=row["max_open_positions"],
                notifications_enabled=bool(row["notifications_enabled"]),
            )
        finally:
            conn.close()

    def save_user_settings(self, settings: UserSettings) -> None:
        """Insert or replace the settings row for a user.

        Args:
            settings: Settings to save.
        """
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT OR REPLACE INTO user_settings
                (user_id, auto_trade_enabled, max_daily_loss, max_position_size,
                 max_open_positions, notifications_enabled)
                VALUES (?, ?, ?, ?, ?, ?)
                """,
                (
                    settings.user_id,
                    1 if settings.auto_trade_enabled else 0,
                    settings.max_daily_loss,
                    settings.max_position_size,
                    settings.max_open_positions,
                    1 if settings.notifications_enabled else 0,
                ),
            )
            conn.commit()
        finally:
            conn.close()

    # ==================== Strategies ====================

    def _row_to_strategy(self, row: sqlite3.Row) -> Strategy:
        config = json.loads(row["config"] or "{}")
        return Strategy(
            id=row["id"],
            user_id=row["user_id"],
            name=row["name"],
            type=row["type"],
            instrument=row["instrument"],
            is_active=bool(row["is_active"]),
            entry_time=config.get("entry_time", "09:30"),
            exit_time=config.get("exit_time", "15:15"),
            risk_params=RiskParams(**json.loads(row["risk_params"] or "{}")),
            created_at=datetime.fromisoformat(row["created_at"]),
        )

    def create_strategy(self, strategy: Strategy) -> str:
        """Insert a strategy.

        Args:
            strategy: Strategy to insert.

        Returns:
            The ID of the stored strategy.
        """
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT INTO trading_strategies
                (id, user_id, name, type, instrument, is_active, config, risk_params, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    strategy.id,
                    strategy.user_id,
                    strategy.name,
                    strategy.type,
                    strategy.instrument,
                    1 if strategy.is_active else 0,
                    json.dumps(
                        {"entry_time": strategy.entry_time, "exit_time": strategy.exit_time}
                    ),
                    strategy.risk_params.model_dump_json(),
                    strategy.created_at.isoformat(),
                ),
            )
            conn.commit()
            return strategy.id
        finally:
            conn.close()

    def get_strategy(self, user_id: str, strategy_id: str) -> Optional[Strategy]:
        """Get a strategy owned by a user.

        Args:
            user_id: Owner.
            strategy_id: Strategy ID.

        Returns:
            Strategy if found, None otherwise.
        """
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT * FROM trading_strategies WHERE id = ? AND user_id = ?",
                (strategy_id, user_id),
            )
            row = cursor.fetchone()
            return self._row_to_strategy(row) if row else None
        finally:
            conn.close()

    def list_strategies(self, user_id: str, active_only: bool = False) -> list[Strategy]:
        """List strategies owned by a user, newest first.

        Args:
            user_id: Owner.
            active_only: Only return active strategies.

        Returns:
            List of strategies.
        """
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            query = "SELECT * FROM trading_strategies WHERE user_id = ?"
            if active_only:
                query += " AND is_active = 1"
            query += " ORDER BY created_at DESC"
            cursor.execute(query, (user_id,))
            return [self._row_to_strategy(row) for row in cursor.fetchall()]
        finally:
            conn.close()

    def set_strategy_active(self, user_id: str, strategy_id: str, active: bool) -> bool:
        """Activate or deactivate a strategy.

        Returns:
            True if a strategy was updated.
        """
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                "UPDATE trading_strategies SET is_active = ? WHERE id = ? AND user_id = ?",
                (1 if active else 0, strategy_id, user_id),
            )
            conn.commit()
            return cursor.rowcount > 0
        finally:
            conn.close()

    def delete_strategy(self, user_id: str, strategy_id: str) -> bool:
        """Delete a strategy, detaching any positions that reference it.

        Returns:
            True if a strategy was deleted.
        """
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                "UPDATE positions SET strategy_id = NULL WHERE strategy_id = ? AND user_id = ?",
                (strategy_id, user_id),
            )
            cursor.execute(
                "DELETE FROM trading_strategies WHERE id = ? AND user_id = ?",
                (strategy_id, user_id),
            )
            conn.commit()
            return cursor.rowcount > 0
        finally:
            conn.close()

    # ==================== Positions ====================

    def _row_to_position(self, row: sqlite3.Row) -> Position:
        return Position(
            id=row["id"],
            user_id=row["user_id"],
            strategy_id=row["strategy_id"],
            broker_order_id=row["broker_order_id"],
            symbol=row["symbol"],
            instrument_type=row["instrument_type"],
            strike_price=row["strike_price"],
            expiry_date=date.fromisoformat(row["expiry_date"]),
            action=row["action"],
            quantity=row["quantity"],
            entry_price=row["entry_price"],
            current_price=row["current_price"],
            exit_price=row["exit_price"],
            pnl=row["pnl"],
            status=row["status"],
            opened_at=datetime.fromisoformat(row["opened_at"]),
            closed_at=_parse_ts(row["closed_at"]),
            created_at=datetime.fromisoformat(row["created_at"]),
        )

    def create_position(self, position: Position) -> str:
        """Insert a position.

        Args:
            position: Position to insert.

        Returns:
            The ID of the stored position.
        """
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT INTO positions
                (id, user_id, strategy_id, broker_order_id, symbol, instrument_type,
                 strike_price, expiry_date, action, quantity, entry_price, current_price,
                 exit_price, pnl, status, opened_at, closed_at, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    position.id,
                    position.user_id,
                    position.strategy_id,
                    position.broker_order_id,
                    position.symbol,
                    position.instrument_type,
                    position.strike_price,
                    position.expiry_date.isoformat(),
                    position.action,
                    position.quantity,
                    position.entry_price,
                    position.current_price,
                    position.exit_price,
                    position.pnl,
                    position.status,
                    position.opened_at.isoformat(),
                    _ts(position.closed_at),
                    position.created_at.isoformat(),
                ),
            )
            conn.commit()
            return position.id
        finally:
            conn.close()

    def get_position(self, user_id: str, position_id: str) -> Optional[Position]:
        """Get a position owned by a user.

        Returns:
            Position if found, None otherwise.
        """
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT * FROM positions WHERE id = ? AND user_id = ?",
                (position_id, user_id),
            )
            row = cursor.fetchone()
            return self._row_to_position(row) if row else None
        finally:
            conn.close()

    def get_positions(
        self,
        user_id: str,
        status: Optional[str] = None,
        since: Optional[datetime] = None,
    ) -> list[Position]:
        """Get positions for a user.

        Args:
            user_id: Owner.
            status: Optional status filter (OPEN, CLOSED, PENDING).
            since: Optional lower bound on creation time (inclusive).

        Returns:
            List of positions, oldest first.
        """
        query = "SELECT * FROM positions WHERE user_id = ?"
        params: list[Any] = [user_id]
        if status:
            query += " AND status = ?"
            params.append(status)
        if since:
            query += " AND created_at >= ?"
            params.append(since.isoformat())
        query += " ORDER BY created_at"

        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(query, params)
            return [self._row_to_position(row) for row in cursor.fetchall()]
        finally:
            conn.close()

    def count_positions(self, user_id: str, status: str) -> int:
        """Count a user's positions with the given status."""
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                "SELECT COUNT(*) AS count FROM positions WHERE user_id = ? AND status = ?",
                (user_id, status),
            )
            return cursor.fetchone()["count"]
        finally:
            conn.close()

    def sum_pnl_since(self, user_id: str, since: datetime) -> float:
        """Sum P&L over a user's positions created at or after ``since``."""
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT COALESCE(SUM(pnl), 0) AS total
                FROM positions
                WHERE user_id = ? AND created_at >= ?
                """,
                (user_id, since.isoformat()),
            )
            return float(cursor.fetchone()["total"])
        finally:
            conn.close()

    def update_position(self, position_id: str, **fields: Any) -> None:
        """Update mutable columns of a position.

        Args:
            position_id: Position ID.
            **fields: Column values to set.

        Raises:
            ValueError: If a field is not updatable.
        """
        self._update_row("positions", self.POSITION_UPDATABLE, position_id, fields)

    def get_open_positions_with_risk(
        self, user_id: str
    ) -> list[tuple[Position, Optional[RiskParams]]]:
        """Get open positions joined with their owning strategy's risk parameters.

        Returns:
            List of (position, risk_params) pairs. ``risk_params`` is None when
            the position has no owning strategy.
        """
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT p.*, s.risk_params AS strategy_risk_params
                FROM positions p
                LEFT JOIN trading_strategies s ON s.id = p.strategy_id
                WHERE p.user_id = ? AND p.status = 'OPEN'
                ORDER BY p.created_at
                """,
                (user_id,),
            )
            results = []
            for row in cursor.fetchall():
                raw = row["strategy_risk_params"]
                risk = RiskParams(**json.loads(raw)) if raw is not None else None
                results.append((self._row_to_position(row), risk))
            return results
        finally:
            conn.close()

    # ==================== Trades ====================

    def create_trade(self, trade: TradeRecord) -> str:
        """Insert a trade audit record.

        Returns:
            The ID of the stored trade.
        """
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT INTO trades
                (id, user_id, position_id, broker_order_id, order_type, action, quantity,
                 price, status, error_message, executed_at, created_at)
                VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    trade.id,
                    trade.user_id,
                    trade.position_id,
                    trade.broker_order_id,
                    trade.order_type,
                    trade.action,
                    trade.quantity,
                    trade.price,
                    trade.status,
                    trade.error_message,
                    _ts(trade.executed_at),
                    trade.created_at.isoformat(),
                ),
            )
            conn.commit()
            return trade.id
        finally:
            conn.close()

    def update_trade(self, trade_id: str, **fields: Any) -> None:
        """Update the broker outcome of a trade record.

        Raises:
            ValueError: If a field is not updatable.
        """
        self._update_row("trades", self.TRADE_UPDATABLE, trade_id, fields)

    def get_trades(self, user_id: str, position_id: Optional[str] = None) -> list[TradeRecord]:
        """Get trade records for a user, oldest first.

        Args:
            user_id: Owner.
            position_id: Optional position filter.
        """
        query = "SELECT * FROM trades WHERE user_id = ?"
        params: list[Any] = [user_id]
        if position_id:
            query += " AND position_id = ?"
            params.append(position_id)
        query += " ORDER BY created_at"

        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(query, params)
            return [
                TradeRecord(
                    id=row["id"],
                    user_id=row["user_id"],
                    position_id=row["position_id"],
                    broker_order_id=row["broker_order_id"],
                    order_type=row["order_type"],
                    action=row["action"],
                    quantity=row["quantity"],
                    price=row["price"],
                    status=row["status"],
                    error_message=row["error_message"],
                    executed_at=_parse_ts(row["executed_at"]),
                    created_at=datetime.fromisoformat(row["created_at"]),
                )
                for row in cursor.fetchall()
            ]
        finally:
            conn.close()

    # ==================== System Logs ====================

    def add_log(
        self,
        user_id: str,
        log_type: str,
        message: str,
        metadata: Optional[dict[str, Any]] = None,
    ) -> int:
        """Append an audit log entry.

        Args:
            user_id: Owner.
            log_type: INFO, WARNING, ERROR or TRADE.
            message: Log message.
            metadata: Optional structured metadata.

        Returns:
            The ID of the log entry.
        """
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT INTO system_logs (user_id, log_type, message, metadata, created_at)
                VALUES (?, ?, ?, ?, ?)
                """,
                (
                    user_id,
                    log_type,
                    message,
                    json.dumps(metadata or {}, default=str),
                    datetime.now().isoformat(),
                ),
            )
            conn.commit()
            return cursor.lastrowid or 0
        finally:
            conn.close()

    def get_logs(
        self,
        user_id: str,
        log_type: Optional[str] = None,
        limit: int = 50,
    ) -> list[SystemLog]:
        """Get the most recent audit log entries, newest first."""
        query = "SELECT * FROM system_logs WHERE user_id = ?"
        params: list[Any] = [user_id]
        if log_type:
            query += " AND log_type = ?"
            params.append(log_type)
        query += " ORDER BY id DESC LIMIT ?"
        params.append(limit)

        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(query, params)
            return [
                SystemLog(
                    id=row["id"],
                    user_id=row["user_id"],
                    log_type=row["log_type"],
                    message=row["message"],
                    metadata=json.loads(row["metadata"] or "{}"),
                    created_at=datetime.fromisoformat(row["created_at"]),
                )
                for row in cursor.fetchall()
            ]
        finally:
            conn.close()

    # ==================== Market Data ====================

    def save_market_data(self, quote: Quote) -> None:
        """Cache a quote snapshot."""
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                """
                INSERT INTO market_data (symbol, ltp, bid, ask, volume, oi, timestamp)
                VALUES (?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    quote.symbol,
                    quote.ltp,
                    quote.bid,
                    quote.ask,
                    quote.volume,
                    quote.oi,
                    datetime.now().isoformat(),
                ),
            )
            conn.commit()
        finally:
            conn.close()

    def get_latest_market_data(self, symbol: str) -> Optional[Quote]:
        """Get the most recent cached quote for a symbol."""
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                """
                SELECT symbol, ltp, bid, ask, volume, oi
                FROM market_data
                WHERE symbol = ?
                ORDER BY id DESC
                LIMIT 1
                """,
                (symbol,),
            )
            row = cursor.fetchone()
            if row is None:
                return None
            return Quote(
                symbol=row["symbol"],
                ltp=row["ltp"],
                bid=row["bid"],
                ask=row["ask"],
                volume=row["volume"],
                oi=row["oi"],
            )
        finally:
            conn.close()

    # ==================== Helpers ====================

    def _update_row(
        self,
        table: str,
        allowed: set[str],
        row_id: str,
        fields: dict[str, Any],
    ) -> None:
        if not fields:
            return
        unknown = set(fields) - allowed
        if unknown:
            raise ValueError(f"Cannot update {table} columns: {sorted(unknown)}")

        columns = sorted(fields)
        values = [
            _ts(fields[c]) if isinstance(fields[c], datetime) else fields[c]
            for c in columns
        ]
        assignments = ", ".join(f"{c} = ?" for c in columns)

        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            cursor.execute(
                f"UPDATE {table} SET {assignments} WHERE id = ?",
                (*values, row_id),
            )
            conn.commit()
        finally:
            conn.close()

    # ==================== Stats ====================

    def get_stats(self) -> dict:
        """Get database statistics.

        Returns:
            Dictionary with table record counts.
        """
        conn = self._get_connection()
        try:
            cursor = conn.cursor()
            stats = {}
            for table in self.REQUIRED_TABLES:
                cursor.execute(f"SELECT COUNT(*) as count FROM {table}")
                stats[table] = cursor.fetchone()["count"]
            return stats
        finally:
            conn.close()
