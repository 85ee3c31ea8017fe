# Envelope "type" discriminators understood by the relay.
# Anything not listed here is relayed to the room untouched.
JOIN_ROOM = "join-room"  # in: roomId, sender
NEW_PEER = "new-peer"  # out: roomId, sender of the joining peer
PEER_LEFT = "peer-left"  # out: roomId, sender of the departed peer
