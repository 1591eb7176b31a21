"""HTTP client for communicating with the NoteShare server."""

import os
import sys
import time
import uuid
from pathlib import Path
from typing import List, Optional
from urllib.parse import quote, unquote

import httpx

from common.constants import MAIN_CATEGORY
from common.logging_config import get_logger
from common.types import DirectoryRecord
from cli.channel_store import ChannelDirectoryStore
from cli.config import Config
from cli.constants import GREEN, RESET
from cli.utils import ProgressFileWrapper, format_file_size

logger = get_logger(__name__)


def filename_from_disposition(disposition: str) -> Optional[str]:
    """
    File name from a Content-Disposition header, preferring the UTF-8
    ``filename*`` parameter. Directory parts are dropped.
    """
    plain = None
    for part in disposition.split(';'):
        key, _, value = part.strip().partition('=')
        key = key.strip().lower()
        if key == 'filename*':
            charset, _, encoded = value.strip().partition("''")
            if encoded:
                encoding = 'utf-8' if charset.lower() in ('', 'utf-8') else 'latin-1'
                return os.path.basename(unquote(encoded, encoding=encoding, errors='replace')) or None
        elif key == 'filename':
            plain = value.strip().strip('"')
    return os.path.basename(plain) if plain else None


class ApiClient:
    """HTTP client for the NoteShare API with retry logic and error handling."""

    def __init__(self, config: Config, store: Optional[ChannelDirectoryStore] = None, transport=None):
        """
        Initialize API client.

        Args:
            config: Configuration instance
            store: Channel directory kept in sync with GET /channels
            transport: Optional httpx transport (tests pass a MockTransport)
        """
        self.config = config
        self.store = store
        self.transport = transport
        self.session = httpx.Client(
            base_url=config.get_base_url(),
            timeout=config.get_timeout(),
            transport=transport,
        )
        self.request_id = None
        logger.info(f"Initialized ApiClient [base_url={config.get_base_url()}]")

    def _calculate_upload_timeout(self, file_size: int) -> float:
        """
        Timeout for an upload: 30s base + 0.1s per MB.
        """
        size_mb = file_size / (1024 * 1024)
        return 30.0 + size_mb * 0.1

    def _request_with_retry(
        self,
        method: str,
        endpoint: str,
        max_retries: Optional[int] = None,
        **kwargs
    ) -> httpx.Response:
        """
        Make HTTP request with retry logic on 5xx errors and network failures.

        Args:
            method: HTTP method (GET, POST, DELETE, etc.)
            endpoint: API endpoint path
            max_retries: Max retry attempts (uses config default if None)
            **kwargs: Additional arguments to pass to httpx request

        Returns:
            HTTP response object

        Raises:
            ConnectionError: If max retries exceeded or connection fails
        """
        retry_config = self.config.get_retry_config()
        max_retries = max_retries if max_retries is not None else retry_config['max_retries']
        backoff = retry_config['retry_backoff_multiplier']

        last_exception = None

        self.request_id = str(uuid.uuid4())
        kwargs.setdefault('headers', {})
        kwargs['headers']['X-Request-ID'] = self.request_id

        logger.debug(f"Making request: {method} {endpoint} [request_id={self.request_id}]")

        for attempt in range(max_retries + 1):
            try:
                response = self.session.request(method, endpoint, **kwargs)

                logger.debug(
                    f"Response received: {method} {endpoint} status={response.status_code} "
                    f"[request_id={self.request_id}]"
                )

                if 400 <= response.status_code < 500:
                    logger.warning(
                        f"Client error: {method} {endpoint} status={response.status_code} "
                        f"[request_id={self.request_id}]"
                    )
                    return response

                if response.status_code >= 500 and attempt < max_retries:
                    delay = backoff ** attempt
                    logger.warning(
                        f"Server error (attempt {attempt + 1}/{max_retries + 1}): "
                        f"{method} {endpoint} status={response.status_code}, retrying in {delay}s "
                        f"[request_id={self.request_id}]"
                    )
                    time.sleep(delay)
                    continue

                return response

            except (httpx.ConnectError, httpx.TimeoutException) as e:
                last_exception = e
                if attempt < max_retries:
                    delay = backoff ** attempt
                    logger.warning(
                        f"Network error (attempt {attempt + 1}/{max_retries + 1}): "
                        f"{method} {endpoint} error={type(e).__name__}, retrying in {delay}s "
                        f"[request_id={self.request_id}]"
                    )
                    time.sleep(delay)
                else:
                    logger.error(
                        f"Network error (max retries exceeded): {method} {endpoint} error={e} "
                        f"[request_id={self.request_id}]"
                    )

        if isinstance(last_exception, httpx.ConnectError):
            raise ConnectionError("Cannot connect to NoteShare server. Is it running?")
        if isinstance(last_exception, httpx.TimeoutException):
            raise ConnectionError("Request timed out. Server may be overloaded.")
        raise ConnectionError("Max retries exceeded")

    def _format_error(self, response: httpx.Response) -> str:
        """
        Map HTTP errors to user-friendly messages.
        """
        try:
            error_data = response.json()
            detail = error_data.get('detail', 'Unknown error')
            code = error_data.get('code', 'UNKNOWN')
        except ValueError:
            detail = response.text if response.text else 'Unknown error'
            code = 'UNKNOWN'

        error_messages = {
            'INVALID_API_KEY': 'Not authenticated. Please run: login <username> <password>',
            'UNAUTHORIZED': 'Not authenticated. Please run: login <username> <password>',
            'USER_ALREADY_EXISTS': 'Username already taken. Try logging in or choose a different username.',
            'INVALID_CREDENTIALS': 'Invalid username or password.',
            'USER_NOT_FOUND': 'Your account no longer exists. Please register again.',
            'FILE_NOT_FOUND': 'File not found on server.',
            'REMOTE_UNAVAILABLE': 'Telegram storage is currently unavailable. Please try again later.',
            'PERSISTENCE_ERROR': 'The server could not save your change. Please try again.',
        }

        if code in error_messages:
            return error_messages[code]

        if code == 'INVALID_INPUT':
            return f"Invalid request: {detail}"

        status_messages = {
            400: 'Bad request',
            401: 'Not authenticated',
            403: 'Access forbidden',
            404: 'Not found',
            413: 'File too large',
            500: 'Server error',
            503: 'Service unavailable',
        }

        message = status_messages.get(response.status_code, detail)
        return f"{message} (Code: {code})" if code != 'UNKNOWN' else message

    def _get_auth_header(self) -> dict:
        """
        Raises:
            ValueError: If no API key is configured
        """
        api_key = self.config.get_api_key()
        if not api_key:
            raise ValueError("Not logged in. Please run: login <username> <password>")
        return {'Authorization': f'Bearer {api_key}'}

    def register(self, username: str, password: str) -> str:
        logger.info(f"Attempting to register user: {username}")
        try:
            response = self._request_with_retry(
                'POST',
                '/auth/register',
                json={'username': username, 'password': password}
            )

            if response.status_code == 201:
                data = response.json()
                self.config.set_api_key(data['api_key'])
                if self.store is not None:
                    self.store.clear_store()
                logger.info(f"Registration successful for user: {username} [user_id={data['user_id']}]")
                return f"Registration successful!\nUser ID: {data['user_id']}\nAPI key saved to config."

            logger.warning(f"Registration failed for user: {username} status={response.status_code}")
            return f"Registration failed: {self._format_error(response)}"

        except ConnectionError as e:
            logger.error(f"Connection error during registration: {e}")
            return f"Error: {e}"

    def login(self, username: str, password: str) -> str:
        logger.info(f"Attempting to login user: {username}")
        try:
            response = self._request_with_retry(
                'POST',
                '/auth/login',
                json={'username': username, 'password': password}
            )

            if response.status_code == 200:
                self.config.set_api_key(response.json()['api_key'])
                logger.info(f"Login successful for user: {username}")
                synced = self.sync_channels()
                return f"Login successful!\nAPI key updated in config.\n{synced}"

            logger.warning(f"Login failed for user: {username} status={response.status_code}")
            return f"Login failed: {self._format_error(response)}"

        except ConnectionError as e:
            logger.error(f"Connection error during login: {e}")
            return f"Error: {e}"

    def sync_channels(self) -> str:
        """
        Replace the local channel directory with the server's copy.
        """
        try:
            headers = self._get_auth_header()
            response = self._request_with_retry('GET', '/channels', headers=headers)
        except (ValueError, ConnectionError) as e:
            return f"Error: {e}"

        if response.status_code != 200:
            return f"Error: {self._format_error(response)}"

        try:
            records = [DirectoryRecord.from_dict(entry) for entry in response.json()]
        except (KeyError, TypeError, ValueError) as e:
            logger.error(f"Malformed channel directory from server: {e}")
            return "Error: Server returned a malformed channel directory."

        if self.store is not None:
            self.store.set_channels(records)
        logger.info(f"Synced {len(records)} subjects into the channel directory")
        return f"Channel directory synced ({len(records)} subjects)."

    def show_channels(self) -> str:
        """Render the local channel directory."""
        if self.store is None:
            return "Error: No channel directory configured."

        subjects = self.store.get_all_subjects()
        if not subjects:
            return "No channels. Subscribe to a subject first, or run: channels --sync"

        lines = []
        for subject in subjects:
            record = self.store.get_record(subject)
            lines.append(f"{subject}  (main {record.main_location})")
            for sub in record.sub_locations:
                link = f"  {sub.share_link}" if sub.share_link else ""
                lines.append(f"  {sub.name:<12} {sub.location}{link}")
        return "\n".join(lines)

    def list_subjects(self) -> str:
        try:
            headers = self._get_auth_header()
            response = self._request_with_retry('GET', '/subjects', headers=headers)
        except (ValueError, ConnectionError) as e:
            return f"Error: {e}"

        if response.status_code != 200:
            return f"Error: {self._format_error(response)}"

        subjects = response.json()
        if not subjects:
            return "You are not subscribed to any subject."
        return "Subscribed subjects:\n" + "\n".join(f"  {s}" for s in subjects)

    def subscribe(self, subjects: List[str]) -> str:
        try:
            headers = self._get_auth_header()
            response = self._request_with_retry(
                'POST', '/subjects', headers=headers, json={'subjects': list(subjects)}
            )
        except (ValueError, ConnectionError) as e:
            return f"Error: {e}"

        if response.status_code != 200:
            return f"Error: {self._format_error(response)}"

        subscribed = response.json().get('subscribed', {})
        lines = [f"Subscribed to {subject}: {', '.join(categories) or 'no channels'}"
                 for subject, categories in subscribed.items()]
        lines.append(self.sync_channels())
        return "\n".join(lines)

    def unsubscribe(self, subject: str) -> str:
        try:
            headers = self._get_auth_header()
            response = self._request_with_retry(
                'DELETE', f'/subjects/{quote(subject, safe="")}', headers=headers
            )
        except (ValueError, ConnectionError) as e:
            return f"Error: {e}"

        if response.status_code != 200:
            return f"Error: {self._format_error(response)}"

        removed = response.json().get('removed_subscriptions', 0)
        synced = self.sync_channels()
        return f"Unsubscribed from {subject} ({removed} channels removed).\n{synced}"

    def list_files(self, subject: str, category: str) -> str:
        try:
            headers = self._get_auth_header()
            response = self._request_with_retry(
                'GET', '/files', headers=headers, params={'subject': subject, 'type': category}
            )
        except (ValueError, ConnectionError) as e:
            return f"Error: {e}"

        if response.status_code != 200:
            return f"Error: {self._format_error(response)}"

        files = response.json()
        if not files:
            return f"No files in {subject} / {category}."

        lines = [f"Files in {subject} / {category}:"]
        for f in files:
            lines.append(f"  {f['id']:<32} {f['name']:<30} {format_file_size(f['size']):>10}  {f['uploaded_at']}")
        return "\n".join(lines)

    def _known_location(self, subject: str, category: str) -> bool:
        if self.store is None or not self.store.has_subject(subject):
            return True
        if category == MAIN_CATEGORY:
            return self.store.get_main_channel_id(subject) is not None
        return self.store.get_channel_id(subject, category) is not None

    def _post_file(self, endpoint: str, file_path: str, data: dict) -> httpx.Response:
        file_size = os.path.getsize(file_path)
        filename = os.path.basename(file_path)
        headers = self._get_auth_header()
        headers['X-Request-ID'] = str(uuid.uuid4())

        with ProgressFileWrapper(file_path, file_size, filename) as wrapper:
            with httpx.Client(
                base_url=self.config.get_base_url(),
                timeout=self._calculate_upload_timeout(file_size),
                transport=self.transport,
            ) as upload_client:
                return upload_client.post(
                    endpoint,
                    files={'file': (filename, wrapper)},
                    data={**data, 'file_name': filename},
                    headers=headers,
                )

    def _check_upload_path(self, file_path: str) -> Optional[str]:
        if not os.path.exists(file_path):
            return f"Error: File not found: {file_path}"
        if not os.path.isfile(file_path):
            return f"Error: Not a file: {file_path}"
        if os.path.getsize(file_path) == 0:
            return f"Error: File is empty: {file_path}"
        return None

    def upload(self, file_path: str, subject: str, category: str) -> str:
        """
        Upload a local file into one of the caller's channels.
        """
        error = self._check_upload_path(file_path)
        if error:
            return error

        if not self._known_location(subject, category):
            return f"Error: No {category} channel for {subject} in your directory. Run: channels --sync"

        try:
            response = self._post_file('/upload', file_path, {'subject': subject, 'type': category})
        except ValueError as e:
            return f"Error: {e}"
        except (httpx.ConnectError, httpx.TimeoutException):
            return "Error: Cannot reach NoteShare server during upload."

        if response.status_code != 200:
            return f"Upload failed: {self._format_error(response)}"

        data = response.json()
        return f"Uploaded: {data['file_name']} (message {data['message_id']})"

    def share(self, file_path: str, subject: str) -> str:
        """
        Upload a local file into a subject's Public channel.
        """
        error = self._check_upload_path(file_path)
        if error:
            return error

        try:
            response = self._post_file('/shared-upload', file_path, {'subject': subject})
        except ValueError as e:
            return f"Error: {e}"
        except (httpx.ConnectError, httpx.TimeoutException):
            return "Error: Cannot reach NoteShare server during upload."

        if response.status_code != 200:
            return f"Share failed: {self._format_error(response)}"

        data = response.json()
        return f"Shared: {data['file_name']} in {subject} (message {data['message_id']})"

    def list_shared(self, subject: Optional[str] = None) -> str:
        params = {'subject': subject} if subject else None
        try:
            headers = self._get_auth_header()
            response = self._request_with_retry('GET', '/shared-files', headers=headers, params=params)
        except (ValueError, ConnectionError) as e:
            return f"Error: {e}"

        if response.status_code != 200:
            return f"Error: {self._format_error(response)}"

        files = response.json()
        if not files:
            return "No shared files."

        lines = ["Shared files:"]
        for f in files:
            lines.append(
                f"  {f['subject']:<24} {f['id']:>8}  {f['name']:<30} "
                f"{format_file_size(f['size']):>10}  by {f['uploaded_by']}"
            )
        return "\n".join(lines)

    def stats(self, refresh: bool = False) -> str:
        try:
            headers = self._get_auth_header()
            response = self._request_with_retry(
                'GET', '/dashboard/stats', headers=headers,
                params={'refresh': 'true' if refresh else 'false'},
            )
        except (ValueError, ConnectionError) as e:
            return f"Error: {e}"

        if response.status_code != 200:
            return f"Error: {self._format_error(response)}"

        stats = response.json()
        lines = [
            f"Total files:     {stats['total_files']}",
            f"Favorite files:  {stats['favorite_files']}",
        ]
        if stats.get('subject_stats'):
            lines.append("Per subject:")
            for stat in stats['subject_stats']:
                lines.append(f"  {stat['subject']:<40} {stat['file_count']}")
        if stats.get('recent_uploads'):
            lines.append("Recent uploads:")
            for item in stats['recent_uploads']:
                lines.append(f"  {item['uploaded_at']}  {item['subject']:<24} {item['name']}")
        if stats.get('last_updated'):
            lines.append(f"Last updated: {stats['last_updated']}")
        return "\n".join(lines)

    def toggle_favorite(self, file_id: str) -> str:
        try:
            headers = self._get_auth_header()
            response = self._request_with_retry(
                'POST', f'/files/{quote(file_id, safe="")}/favorite', headers=headers
            )
        except (ValueError, ConnectionError) as e:
            return f"Error: {e}"

        if response.status_code != 200:
            return f"Error: {self._format_error(response)}"

        if response.json().get('is_favorite'):
            return f"Added {file_id} to favorites."
        return f"Removed {file_id} from favorites."

    def _output_file(self, response: httpx.Response, fallback_name: str, output_path: Optional[str]) -> Path:
        filename = filename_from_disposition(response.headers.get('Content-Disposition', '')) or fallback_name

        output_file = Path(output_path) if output_path else Path.cwd() / filename
        if output_file.exists() and output_file.is_dir():
            output_file = output_file / filename
        output_file.parent.mkdir(parents=True, exist_ok=True)
        return output_file

    def _download(self, url: str, label: str, output_path: Optional[str]) -> str:
        try:
            headers = self._get_auth_header()
        except ValueError as e:
            return f"Error: {e}"

        try:
            with self.session.stream('GET', url, headers=headers) as response:
                if response.status_code != 200:
                    response.read()
                    return f"Error: {self._format_error(response)}"

                output_file = self._output_file(response, label, output_path)
                total_size = int(response.headers.get('Content-Length', 0))
                downloaded = 0

                with open(output_file, 'wb') as f:
                    for chunk in response.iter_bytes(chunk_size=8192):
                        f.write(chunk)
                        downloaded += len(chunk)
                        if total_size > 0:
                            progress = (downloaded / total_size) * 100
                            sys.stdout.write(
                                f"\rDownloading {output_file.name}: {format_file_size(downloaded)} / "
                                f"{format_file_size(total_size)} ({GREEN}{progress:.1f}%{RESET})"
                            )
                        else:
                            sys.stdout.write(f"\rDownloading {output_file.name}: {format_file_size(downloaded)}")
                        sys.stdout.flush()

                sys.stdout.write('\n')
                sys.stdout.flush()
                return f"Downloaded: {output_file.name} ({format_file_size(downloaded)})\nSaved to: {output_file.absolute()}"

        except httpx.ConnectError:
            return "Error: Cannot connect to NoteShare server. Is it running?"
        except httpx.TimeoutException:
            return "Error: Request timed out. Server may be overloaded."
        except IOError as e:
            return f"Error writing file: {e}"

    def download(self, file_id: str, output_path: Optional[str] = None) -> str:
        return self._download(f'/files/{quote(file_id, safe="")}/download', file_id, output_path)

    def download_shared(self, subject: str, message_id: int, output_path: Optional[str] = None) -> str:
        url = f'/shared-files/{quote(subject, safe="")}/{message_id}/download'
        return self._download(url, f"shared_{message_id}", output_path)

    def close(self) -> None:
        """Close the HTTP session."""
        self.session.close()
