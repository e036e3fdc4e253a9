"""
RADIO RELAY v1.0 — Session Registry
Tracks connected desktops and mobiles, their pairing codes, and the
desktop <-> mobile links between them.

Links are always kept symmetric: whenever one side points at a peer,
the peer points back.
"""

import logging
import random
from typing import Optional

from models import Session, Role, ErrorKind, failure

logger = logging.getLogger("radio.sessions")

PAIRING_CODE_MIN = 100000
PAIRING_CODE_MAX = 999999  # exclusive


class SessionRegistry:
    """In-memory registry of every session that has sent `register`."""

    def __init__(self, rng: random.Random = None):
        self.rng = rng or random.Random()
        self.sessions: dict[str, Session] = {}

    # ── Lookup helpers ────────────────────────────────

    def get(self, session_id: str) -> Optional[Session]:
        return self.sessions.get(session_id)

    def peer_of(self, session_id: str) -> Optional[Session]:
        session = self.sessions.get(session_id)
        if not session or not session.paired_peer_id:
            return None
        return self.sessions.get(session.paired_peer_id)

    def desktops(self) -> list[Session]:
        return [s for s in self.sessions.values() if s.is_desktop]

    def mobiles(self) -> list[Session]:
        return [s for s in self.sessions.values() if s.is_mobile]

    def find_by_code(self, code: str) -> Optional[Session]:
        for session in self.desktops():
            if session.pairing_code == code:
                return session
        return None

    # ── Registration ──────────────────────────────────

    def _generate_code(self) -> str:
        live = {s.pairing_code for s in self.desktops()}
        while True:
            code = str(self.rng.randrange(PAIRING_CODE_MIN, PAIRING_CODE_MAX))
            if code not in live:
                return code

    def register_desktop(self, session_id: str) -> Session:
        """Create a desktop session with a fresh 6-digit pairing code."""
        self._forget(session_id)
        session = Session(id=session_id, role=Role.DESKTOP,
                          pairing_code=self._generate_code())
        self.sessions[session_id] = session
        logger.info(f"Desktop registered with code {session.pairing_code} ({session_id})")
        return session

    def register_mobile(self, session_id: str) -> Session:
        """Create an unpaired mobile session."""
        self._forget(session_id)
        session = Session(id=session_id, role=Role.MOBILE)
        self.sessions[session_id] = session
        logger.info(f"Mobile registered ({session_id})")
        return session

    # ── Pairing ───────────────────────────────────────

    def pair(self, mobile_id: str, code) -> dict:
        """
        Link a mobile to the desktop currently holding `code`.
        Any previous link on either side is dropped first, so re-pairing
        never leaves a desktop pointing at a mobile that moved on.
        """
        mobile = self.sessions.get(mobile_id)
        if not mobile or not mobile.is_mobile:
            return failure(ErrorKind.NOT_REGISTERED, "Register as mobile before pairing")

        code = str(code).strip() if code is not None else ""
        desktop = self.find_by_code(code) if code else None
        if not desktop:
            logger.info(f"Pairing failed for mobile {mobile_id}: no desktop with code {code!r}")
            return failure(ErrorKind.INVALID_PAIRING_CODE, "Invalid pairing code")

        released = []
        if mobile.paired_peer_id and mobile.paired_peer_id != desktop.id:
            released.append(mobile.paired_peer_id)
        if desktop.paired_peer_id and desktop.paired_peer_id != mobile.id:
            released.append(desktop.paired_peer_id)
        self._unlink(mobile)
        self._unlink(desktop)

        mobile.paired_peer_id = desktop.id
        desktop.paired_peer_id = mobile.id
        logger.info(f"Paired mobile {mobile.id} with desktop {desktop.id}")

        return {
            "success": True,
            "desktop_id": desktop.id,
            "mobile_id": mobile.id,
            "released": released,
        }

    def _unlink(self, session: Session):
        """Clear a session's link and the back-reference on its peer."""
        if not session.paired_peer_id:
            return
        peer = self.sessions.get(session.paired_peer_id)
        if peer and peer.paired_peer_id == session.id:
            peer.paired_peer_id = None
        session.paired_peer_id = None

    # ── Disconnect ────────────────────────────────────

    def disconnect(self, session_id: str) -> tuple[Optional[Session], Optional[Session]]:
        """
        Remove a session. Returns (removed, former_peer); both None when the
        id is unknown, which makes repeated disconnects harmless.
        """
        session = self.sessions.get(session_id)
        if not session:
            return None, None

        peer = self.peer_of(session_id)
        self._unlink(session)
        del self.sessions[session_id]
        logger.info(f"{session.role.value.capitalize()} {session_id} removed"
                    + (f"; peer {peer.id} unlinked" if peer else ""))
        return session, peer

    def _forget(self, session_id: str):
        """A connection that registers again starts over from a clean session."""
        if session_id in self.sessions:
            self.disconnect(session_id)

    def snapshot(self) -> dict:
        return {
            "desktops": [s.to_dict() for s in self.desktops()],
            "mobiles": [s.to_dict() for s in self.mobiles()],
        }
