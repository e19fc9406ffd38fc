import logging
from flask_sqlalchemy import SQLAlchemy
from flask_mail import Mail
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address
from sqlalchemy import text
from typing import Dict, Any

logger = logging.getLogger(__name__)

class MonitoredSQLAlchemy(SQLAlchemy):
    """Extended SQLAlchemy with connection pool monitoring."""

    def get_pool_stats(self) -> Dict[str, Any]:
        """Get current connection pool statistics."""
        try:
            pool = self.engine.pool
            size = pool.size() if hasattr(pool, 'size') else 0
            checked_out = pool.checkedout() if hasattr(pool, 'checkedout') else 0
            return {
                'pool_size': size,
                'checked_out': checked_out,
                'utilization_percent': (checked_out / max(size, 1)) * 100,
            }
        except Exception as e:
            logger.error(f"Error getting pool stats: {e}")
            return {'pool_size': 0, 'checked_out': 0, 'utilization_percent': 0, 'error': str(e)}

    def health_check(self) -> bool:
        """Perform a health check on the database connection."""
        try:
            result = self.session.execute(text("SELECT 1")).scalar()
            return result == 1
        except Exception as e:
            logger.error(f"Database health check failed: {e}")
            return False

db = MonitoredSQLAlchemy()
mail = Mail()
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=["1000 per day", "500 per hour"]
)
