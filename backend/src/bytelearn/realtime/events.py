"""Names of the events exchanged over the ``/ws/events`` socket."""

from __future__ import annotations

# Control frames
PING = "ping"
PONG = "pong"
AUTH = "auth"
JOIN_ROOM = "join-room"
LEAVE_ROOM = "leave-room"

# Identity gate
UNAUTHORIZED_ACCESS = "unauthorized-access"
INVALID_TOKEN = "invalid-token"

# Generic outcomes
NOT_FOUND = "not-found"
NOT_ALLOWED = "not-allowed"
INVALID_INPUT = "invalid-input"
SERVER_ERROR = "server-error"

# Presence
PRESENCE_CHANGED = "presence-changed"

# Friendship protocol
ADD_FRIEND = "add-friend"
ACCEPT_FRIEND_REQUEST = "accept-friend-request"
REJECT_FRIEND_REQUEST = "reject-friend-request"
SEEN_NOTIFICATION = "seen-notification"
NEW_NOTIFICATION = "new-notification"
SEND_NOTIFICATION = "send-notification"
CHANGED_TO_SEEN = "changed-to-seen"
FRIEND_REQUEST_ACCEPTED = "friend-request-accepted"
FRIEND_REQUEST_ACCEPTED_NOTIFICATION = "friend-request-accepted-notification"
FRIEND_REQUEST_REJECTED = "friend-request-rejected"
FRIEND_REQUEST_REJECTED_NOTIFICATION = "friend-request-rejected-notification"
REMOVED_FRIEND = "removed-friend"
REMOVED_FRIEND_NOTIFICATION = "removed-friend-notification"

# Direct messages
CREATE_ROOM = "create-room"
CHAT_ROOM_FOUND = "chat-room-found"
CHAT_ROOM_CREATED = "chat-room-created"
NO_LONGER_FRIENDS = "no-longer-friends"
SEND_MESSAGE = "send-message"
RECEIVED_MESSAGE = "received-message"
TYPING = "typing"
STOP_TYPING = "stop-typing"
MARK_MESSAGES_AS_READ = "mark-messages-as-read"
MESSAGES_MARKED_AS_READ = "messages-marked-as-read"

# Course feedback
SEND_FEEDBACK = "send-feedback"
FEEDBACK_SENT = "feedback-sent"
GET_FEEDBACK_HISTORY = "get-feedback-history"
FEEDBACK_HISTORY_SENT = "feedback-history-sent"
JOIN_COURSE_ROOM = "join-course-room"
LEAVE_COURSE_ROOM = "leave-course-room"
EDIT_MESSAGE = "edit-message"
MESSAGE_EDITED = "message-edited"
FEEDBACK_MESSAGE_UPDATED = "feedback-message-updated"
DELETE_FEEDBACK_MESSAGE = "delete-feedback-message"
DELETED_FEEDBACK_MESSAGE = "deleted-feedback-message"
FEEDBACK_MESSAGE_DELETED = "feedback-message-deleted"
LIKE_FEEDBACK_MESSAGE = "like-feedback-message"
FEEDBACK_MESSAGE_LIKED = "feedback-message-liked"
