# vaultledger/clients/ledger_client.py

import requests

# =========================
# CONFIGURATION
# =========================

SERVER_URL = "http://127.0.0.1:8000"
PRINCIPAL_HEADER = "X-Principal"
DEFAULT_TIMEOUT = 10


class LedgerClientError(Exception):
    def __init__(self, status_code: int, error: str, detail: str):
        self.status_code = status_code
        self.error = error
        self.detail = detail
        super().__init__(f"{status_code} {error}: {detail}")


# =========================
# LEDGER CLIENT
# =========================

class LedgerClient:
    """Thin HTTP client acting as one principal"""

    def __init__(self, principal: str, base_url: str = SERVER_URL, session=None, timeout=DEFAULT_TIMEOUT):
        self.principal = principal
        self.base_url = base_url.rstrip("/")
        self.session = session or requests.Session()
        self.timeout = timeout

    def _request(self, method: str, path: str, json=None):
        kwargs = {"headers": {PRINCIPAL_HEADER: self.principal}}
        if json is not None:
            kwargs["json"] = json
        if isinstance(self.session, requests.Session):
            kwargs["timeout"] = self.timeout

        resp = self.session.request(method, f"{self.base_url}{path}", **kwargs)
        if resp.status_code >= 400:
            try:
                data = resp.json()
            except ValueError:
                data = {"detail": resp.text}
            raise LedgerClientError(
                resp.status_code,
                data.get("error", "http_error"),
                str(data.get("detail", "")),
            )
        return resp.json()

    # ---------- MESSAGES ----------

    def send_message(self, receiver: str, body: str):
        return self._request("POST", "/messages/send", {"receiver": receiver, "body": body})

    def send_to_many(self, receivers, body: str):
        return self._request("POST", "/messages/broadcast", {"receivers": list(receivers), "body": body})

    def send_expirable(self, receiver: str, body: str, ttl_seconds: int):
        return self._request("POST", "/messages/expirable", {
            "receiver": receiver,
            "body": body,
            "ttl_seconds": ttl_seconds,
        })

    def forward(self, original_sender: str, index: int, new_receiver: str):
        return self._request("POST", "/messages/forward", {
            "original_sender": original_sender,
            "index": index,
            "new_receiver": new_receiver,
        })

    def edit(self, index: int, body: str):
        return self._request("PATCH", f"/messages/sent/{index}", {"body": body})

    def delete_sent(self, index: int):
        return self._request("DELETE", f"/messages/sent/{index}")

    def delete_received(self, index: int):
        return self._request("DELETE", f"/messages/received/{index}")

    def sent(self):
        return self._request("GET", "/messages/sent")

    def received(self):
        return self._request("GET", "/messages/received")

    def sent_expirable(self):
        return self._request("GET", "/messages/sent/expirable")

    def received_expirable(self):
        return self._request("GET", "/messages/received/expirable")

    # ---------- GROUPS ----------

    def create_group(self, members, name: str) -> int:
        return self._request("POST", "/groups", {"members": list(members), "name": name})["group_id"]

    def send_to_group(self, group_id: int, body: str):
        return self._request("POST", f"/groups/{group_id}/messages", {"body": body})

    def group(self, group_id: int):
        return self._request("GET", f"/groups/{group_id}")

    def groups_count(self) -> int:
        return self._request("GET", "/groups/count")["count"]

    # ---------- SYSTEM ----------

    def post_system_message(self, text: str):
        return self._request("POST", "/system/messages", {"text": text})

    def system_messages(self):
        return self._request("GET", "/system/messages")

    def admin(self) -> str:
        return self._request("GET", "/system/admin")["admin"]

    # ---------- WALLET ----------

    def deposit(self, amount: int) -> int:
        return self._request("POST", "/wallet/deposit", {"amount": amount})["balance"]

    def send_funds(self, to: str, amount: int):
        return self._request("POST", "/wallet/transfer", {"to": to, "amount": amount})

    def balance(self, principal: str | None = None) -> int:
        return self._request("GET", f"/wallet/balance/{principal or self.principal}")["balance"]
