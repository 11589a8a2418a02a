"""
Device store backed by a Supabase (PostgREST) `devices` table.

Every round-trip carries a bounded timeout. Transport problems, timeouts
and 5xx responses become StoreUnavailable; 409 becomes ConflictError; a
query that matches no row becomes DeviceNotFound.
"""

import requests

from infinos.components import BagDevice
from infinos.errors import ConflictError, DeviceNotFound, StoreUnavailable


class SupabaseDeviceStore:

    def __init__(self, url, key, table='devices', timeout=5.0, session=None):
        self._base    = f"{url.rstrip('/')}/rest/v1/{table}"
        self._timeout = timeout
        self._session = session or requests.Session()
        self._session.headers.update({
            'apikey': key,
            'Authorization': f"Bearer {key}",
            'Content-Type': 'application/json',
            'Accept': 'application/json',
        })

    # ========== CONTRACT ==========

    def list_devices(self):
        rows = self._request('GET', params={'select': '*'})
        return [BagDevice.from_record(row) for row in rows]

    def get_device(self, code):
        rows = self._request('GET', params={
            'select': '*',
            'device_code': f"eq.{code}",
        })
        if not rows:
            raise DeviceNotFound(code)
        return BagDevice.from_record(rows[0])

    def update_device(self, code, fields):
        rows = self._request(
            'PATCH',
            params={'device_code': f"eq.{code}"},
            json=fields,
            headers={'Prefer': 'return=representation'},
        )
        if not rows:
            raise DeviceNotFound(code)
        return BagDevice.from_record(rows[0])

    def create_device(self, fields):
        rows = self._request(
            'POST',
            json=fields,
            headers={'Prefer': 'return=representation'},
        )
        if not rows:
            raise StoreUnavailable("Insert returned no row")
        return BagDevice.from_record(rows[0])

    def close(self):
        self._session.close()

    # ========== TRANSPORT ==========

    def _request(self, method, params=None, json=None, headers=None):
        try:
            resp = self._session.request(
                method, self._base,
                params=params, json=json, headers=headers,
                timeout=self._timeout,
            )
        except requests.Timeout as exc:
            raise StoreUnavailable(f"{method} timed out after {self._timeout}s") from exc
        except requests.RequestException as exc:
            raise StoreUnavailable(f"{method} failed: {exc}") from exc

        if resp.status_code == 409:
            raise ConflictError(_error_message(resp))
        if resp.status_code >= 500:
            raise StoreUnavailable(f"{method} returned {resp.status_code}: {_error_message(resp)}")
        if resp.status_code >= 400:
            raise StoreUnavailable(f"{method} rejected ({resp.status_code}): {_error_message(resp)}")

        if not resp.content:
            return []
        try:
            data = resp.json()
        except ValueError as exc:
            raise StoreUnavailable(f"{method} returned a non-JSON body") from exc
        if isinstance(data, dict):
            return [data]
        return data


def _error_message(resp):
    try:
        body = resp.json()
    except ValueError:
        return resp.text
    if isinstance(body, dict):
        return body.get('message') or body.get('details') or str(body)
    return str(body)
