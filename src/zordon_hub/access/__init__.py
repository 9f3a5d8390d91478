"""
Access Control Module
=====================

Role and ownership rules for tickets and comments.
"""

from zordon_hub.access.policy import (
    can_assign,
    can_change_status,
    can_create_ticket,
    can_delete_comment,
    can_delete_ticket,
    can_edit_comment,
    can_list_all_tickets,
    can_list_assigned,
    can_list_reported,
    can_manage_users,
    can_post_comment,
    can_read_comments,
    can_read_ticket,
    can_trigger_deadline_sweep,
    ensure_can_assign,
    ensure_can_change_status,
    ensure_can_create_ticket,
    ensure_can_delete_comment,
    ensure_can_delete_ticket,
    ensure_can_edit_comment,
    ensure_can_list_all_tickets,
    ensure_can_list_assigned,
    ensure_can_list_reported,
    ensure_can_manage_users,
    ensure_can_post_comment,
    ensure_can_read_comments,
    ensure_can_read_ticket,
    ensure_can_trigger_deadline_sweep,
)

__all__ = [
    "can_assign",
    "can_change_status",
    "can_create_ticket",
    "can_delete_comment",
    "can_delete_ticket",
    "can_edit_comment",
    "can_list_all_tickets",
    "can_list_assigned",
    "can_list_reported",
    "can_manage_users",
    "can_post_comment",
    "can_read_comments",
    "can_read_ticket",
    "can_trigger_deadline_sweep",
    "ensure_can_assign",
    "ensure_can_change_status",
    "ensure_can_create_ticket",
    "ensure_can_delete_comment",
    "ensure_can_delete_ticket",
    "ensure_can_edit_comment",
    "ensure_can_list_all_tickets",
    "ensure_can_list_assigned",
    "ensure_can_list_reported",
    "ensure_can_manage_users",
    "ensure_can_post_comment",
    "ensure_can_read_comments",
    "ensure_can_read_ticket",
    "ensure_can_trigger_deadline_sweep",
]
