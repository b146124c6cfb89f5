# plugins/tumblr/resource/publisher.py
"""
Tumblr Publish Resource Plugin
==============================

Publishes posts to a linked Tumblr blog in the background.

dispatch() is called after the local post has been saved. It looks up the
user's link, puts a task on a bounded queue and returns without touching the
network. A fixed set of worker threads takes tasks off the queue, signs a
text-post request with the user's access token and sends it.

Publishing is best-effort: a user without a link, stopped workers, a full
queue, a timeout or an error response is logged and the task is dropped.
Nothing is retried and nothing is reported back to the caller, whose request
has already finished.
No ordering is kept between tasks.
"""

import logging
import queue
import threading
from typing import List, Optional

import httpx
from pydantic import BaseModel

from plugins import ResourcePlugin
from plugins.tumblr.auth.oauth import OAuth1Client
from plugins.tumblr.auth.token_store import TokenStore
from plugins.tumblr.auth.tokens import UserServiceLink
from plugins.tumblr.config import TumblrSettings
from plugins.tumblr.directives import PublishDirective
from plugins.tumblr.errors import PublishError, TumblrError
from plugins.tumblr.json_path import json_str

logger = logging.getLogger(__name__)


class PublishTask(BaseModel):
    user_id: str
    link: UserServiceLink
    body: str


class PublishDispatcher(ResourcePlugin):
    """
    Fire-and-forget publisher backed by a bounded worker pool.

    Args:
        token_store: Source of the users' access links
        oauth_client: Signs the publish requests
        http_client: Shared httpx client; its timeout bounds every publish
        settings: Tumblr settings
        workers: Number of worker threads
        queue_size: Maximum number of tasks waiting for a worker
    """

    service_name = "tumblr_publish"

    def __init__(
        self,
        token_store: TokenStore,
        oauth_client: OAuth1Client,
        http_client: httpx.Client,
        settings: TumblrSettings,
        workers: int = 4,
        queue_size: int = 100
    ):
        if workers < 1:
            raise ValueError("workers must be at least 1")
        self._token_store = token_store
        self._oauth = oauth_client
        self._http = http_client
        self._settings = settings
        self._worker_count = workers
        self._queue: "queue.Queue[Optional[PublishTask]]" = queue.Queue(maxsize=queue_size)
        self._threads: List[threading.Thread] = []
        self._lock = threading.Lock()

    @property
    def running(self) -> bool:
        with self._lock:
            return bool(self._threads)

    def pending(self) -> int:
        """Number of tasks waiting for a worker."""
        return self._queue.qsize()

    def start(self) -> None:
        """Start the worker threads; calling it again is a no-op."""
        with self._lock:
            if self._threads:
                return
            for index in range(self._worker_count):
                thread = threading.Thread(
                    target=self._work,
                    name=f"tumblr-publish-{index}",
                    daemon=True
                )
                thread.start()
                self._threads.append(thread)
        logger.info(f"Started {self._worker_count} Tumblr publish worker(s)")

    def shutdown(self, wait: bool = True, timeout: Optional[float] = None) -> None:
        """
        Stop the workers after the tasks already queued have been handled.

        Args:
            wait: Join the worker threads before returning
            timeout: Per-thread join timeout in seconds
        """
        with self._lock:
            threads = self._threads
            self._threads = []

        for _ in threads:
            self._queue.put(None)
        if wait:
            for thread in threads:
                thread.join(timeout)
        if threads:
            logger.info("Stopped Tumblr publish workers")

    def dispatch(self, user_id: str, directive: PublishDirective) -> bool:
        """
        Schedule a publish and return immediately.

        Tasks are only accepted while the workers are running.

        Returns:
            bool: True if the task was queued, False if it was dropped
        """
        if not directive.body.strip():
            logger.warning(f"Not publishing empty post for user {user_id}")
            return False

        link = self._token_store.get_access_link(user_id)
        if link is None:
            logger.warning(f"User {user_id} has no linked Tumblr account, dropping publish")
            return False

        task = PublishTask(user_id=user_id, link=link, body=directive.body)
        # same lock as shutdown(), so no task is queued behind a sentinel
        with self._lock:
            if not self._threads:
                logger.warning(f"Publish workers are not running, dropping publish for user {user_id}")
                return False
            try:
                self._queue.put_nowait(task)
            except queue.Full:
                logger.warning(f"Publish queue is full, dropping publish for user {user_id}")
                return False

        logger.debug(f"Queued Tumblr publish for user {user_id} to {link.account_identifier}")
        return True

    def publish_url(self, account_identifier: str) -> str:
        return f"{self._settings.API_BASE_URL}/blog/{account_identifier}/post"

    def publish(self, task: PublishTask) -> Optional[str]:
        """
        Send one text post to Tumblr on the worker's thread.

        Returns:
            Optional[str]: The id of the new Tumblr post, if Tumblr returned one

        Raises:
            PublishError: On transport errors, timeouts or non-2xx responses
        """
        request = self._oauth.signed_request(
            "POST",
            self.publish_url(task.link.account_identifier),
            {"type": "text", "body": task.body},
            task.link.access_token
        )
        try:
            response = request.send(self._http)
        except httpx.HTTPError as e:
            raise PublishError(f"Publish to {task.link.account_identifier} failed: {e}") from e

        if not response.is_success:
            raise PublishError(
                f"Publish to {task.link.account_identifier} returned HTTP {response.status_code}"
            )

        try:
            data = response.json()
        except ValueError:
            data = None
        return json_str(data, "response", "id_string") or json_str(data, "response", "id")

    def _work(self) -> None:
        while True:
            task = self._queue.get()
            try:
                if task is None:
                    return
                post_id = self.publish(task)
                logger.info(
                    f"Published post {post_id or '(unknown id)'} to {task.link.account_identifier} "
                    f"for user {task.user_id}"
                )
            except TumblrError as e:
                logger.error(f"Tumblr publish for user {task.user_id} failed: {e}")
            except Exception as e:
                # a failing task must not take the worker down with it
                logger.exception(f"Unexpected error while publishing for user {task.user_id}: {e}")
            finally:
                self._queue.task_done()
