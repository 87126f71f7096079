import logging
import mimetypes
import threading
from contextlib import contextmanager

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from tenacity import Retrying, retry_if_exception_type, stop_after_attempt

from order_portal.models.feedback import Feedback
from order_portal.models.order import Order
from order_portal.models.version import Version
from order_portal.services.order_status import SENT, apply_event
from order_portal.utils.exceptions import (
    InvalidFeedback,
    NoFileProvided,
    OrderNotFound,
    StoreReadFailed,
    StoreWriteFailed,
    TokenExpired,
    UploadTimeout,
)
from order_portal.utils.files import staged_file
from order_portal.utils.tokens import (
    compute_token_expiry,
    generate_token,
    is_expired,
    to_iso,
    utcnow,
)

logger = logging.getLogger(__name__)

VERSION_INSERT_ATTEMPTS = 3

# Fixed pool of locks; an order always maps to the same one
ORDER_LOCK_STRIPES = 64
_order_locks = tuple(threading.Lock() for _ in range(ORDER_LOCK_STRIPES))


def lock_for(order_id):
    return _order_locks[int(order_id) % ORDER_LOCK_STRIPES]


@contextmanager
def order_lock(order_id):
    """Serializes writes to one order's versions and status within this process."""
    with lock_for(order_id):
        yield


def log_retry(retry_state):
    logger.warning(
        "Retrying %s after %s (attempt %d)",
        getattr(retry_state.fn, "__name__", "call"),
        type(retry_state.outcome.exception()).__name__,
        retry_state.attempt_number,
    )


class OrderService:
    def __init__(self, session, uploader, temp_dir, upload_timeout=None, upload_attempts=1):
        self.session = session
        self.uploader = uploader
        self.temp_dir = temp_dir
        self.upload_timeout = upload_timeout
        self.upload_attempts = max(int(upload_attempts or 1), 1)

    # ------------------------------------------------------------
    # Uploads
    # ------------------------------------------------------------
    def _upload(self, file_bytes, file_name):
        """Stage, push to storage and return the storage reference.

        Only timeouts are retried, and only here, before any row exists.
        """
        if not file_bytes:
            raise NoFileProvided()

        content_type = mimetypes.guess_type(file_name or "")[0]

        with staged_file(file_bytes, file_name, self.temp_dir) as path:
            retrying = Retrying(
                stop=stop_after_attempt(self.upload_attempts),
                retry=retry_if_exception_type(UploadTimeout),
                before_sleep=log_retry,
                reraise=True,
            )
            return retrying(
                self.uploader.upload,
                path,
                file_name,
                content_type=content_type,
                timeout=self.upload_timeout,
            )

    # ------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------
    def get_order(self, order_id):
        try:
            order = self.session.get(Order, order_id)
        except SQLAlchemyError as e:
            logger.error("Order %s lookup failed: %s", order_id, e)
            raise StoreReadFailed("Order could not be loaded", str(e)) from e
        if not order:
            raise OrderNotFound()
        return order

    def get_order_by_token(self, token, now=None):
        try:
            order = self.session.query(Order).filter_by(token=token).first()
        except SQLAlchemyError as e:
            logger.error("Token lookup failed: %s", e)
            raise StoreReadFailed("Order could not be loaded", str(e)) from e
        if not order:
            raise OrderNotFound()
        if is_expired(order.token_expiry, now):
            raise TokenExpired(order.token_expiry)
        return order

    def _locked_order(self, order_id):
        """Reload the order under a row lock, discarding any stale state."""
        order = (
            self.session.query(Order)
            .filter_by(id=order_id)
            .populate_existing()
            .with_for_update()
            .first()
        )
        if not order:
            raise OrderNotFound()
        return order

    # ------------------------------------------------------------
    # Writes
    # ------------------------------------------------------------
    def create_order(self, client_name, client_phone, file_bytes, file_name):
        """Upload the deliverable, then insert the order and its version 1.

        Returns the new order id.
        """
        file_url = self._upload(file_bytes, file_name)

        now = utcnow()
        order = Order(
            client_name=client_name,
            client_phone=client_phone,
            token=generate_token(),
            token_expiry=to_iso(compute_token_expiry(now)),
            status=SENT,
            has_new_feedback=False,
            created_at=to_iso(now),
        )

        try:
            self.session.add(order)
            self.session.flush()
            order_id = order.id

            self.session.add(Version(
                order_id=order_id,
                file_url=file_url,
                version_number=1,
                uploaded_at=to_iso(now),
            ))
            self.session.commit()
        except SQLAlchemyError as e:
            self.session.rollback()
            logger.error("Order insert failed (%s); uploaded file is unreferenced: %s", e, file_url)
            raise StoreWriteFailed("Upload failed", str(e)) from e

        logger.info("Created order %s with version 1", order_id)
        return order_id

    def append_version(self, order_id, file_bytes, file_name):
        self.get_order(order_id)
        file_url = self._upload(file_bytes, file_name)

        retrying = Retrying(
            stop=stop_after_attempt(VERSION_INSERT_ATTEMPTS),
            retry=retry_if_exception_type(IntegrityError),
            before_sleep=log_retry,
            reraise=True,
        )

        with order_lock(order_id):
            try:
                version = retrying(self._insert_next_version, order_id, file_url)
            except SQLAlchemyError as e:
                logger.error("Version insert for order %s failed (%s); unreferenced: %s", order_id, e, file_url)
                raise StoreWriteFailed("Version could not be saved", str(e)) from e

        logger.info("Order %s now at version %s", order_id, version.version_number)
        return version

    def _insert_next_version(self, order_id, file_url):
        try:
            order = self._locked_order(order_id)

            last_number = (
                self.session.query(func.max(Version.version_number))
                .filter_by(order_id=order_id)
                .scalar()
            ) or 0

            now = utcnow()
            version = Version(
                order_id=order_id,
                file_url=file_url,
                version_number=last_number + 1,
                uploaded_at=to_iso(now),
            )
            self.session.add(version)

            apply_event(order, "new_version")
            order.token_expiry = to_iso(compute_token_expiry(now))

            self.session.commit()
        except SQLAlchemyError:
            self.session.rollback()
            raise
        return version

    def record_feedback(self, order_id, message):
        message = (message or "").strip()
        if not message:
            raise InvalidFeedback()

        with order_lock(order_id):
            try:
                order = self._locked_order(order_id)
                apply_event(order, "feedback")
                feedback = Feedback(order_id=order.id, message=message, created_at=to_iso(utcnow()))
                order.has_new_feedback = True
                self.session.add(feedback)
                self.session.commit()
            except SQLAlchemyError as e:
                self._write_failed(e, "Feedback could not be saved")
            except Exception:
                self.session.rollback()
                raise
        return feedback

    def mark_feedback_seen(self, order_id):
        order = self.get_order(order_id)
        order.has_new_feedback = False
        self._commit("Order could not be updated")
        return order

    def mark_viewed(self, order):
        return self._apply_locked(order.id, "viewed", "Order could not be updated")

    def approve(self, order):
        return self._apply_locked(order.id, "approved", "Order could not be approved")

    def _apply_locked(self, order_id, event, failure_message):
        with order_lock(order_id):
            try:
                order = self._locked_order(order_id)
                apply_event(order, event)
                self.session.commit()
            except SQLAlchemyError as e:
                self._write_failed(e, failure_message)
            except Exception:
                self.session.rollback()
                raise
        return order

    def _commit(self, failure_message):
        try:
            self.session.commit()
        except SQLAlchemyError as e:
            self._write_failed(e, failure_message)

    def _write_failed(self, exc, message):
        self.session.rollback()
        logger.error("%s: %s", message, exc)
        raise StoreWriteFailed(message, str(exc)) from exc
