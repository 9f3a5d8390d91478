"""
Comment Controllers (API Routes)
================================

Thread routes live under ``/tickets/{id}/comments``; single-comment edits
under ``/comments/{id}``.
"""

from fastapi import APIRouter, Depends, status

from zordon_hub.comments.application import CommentRequest, CommentService
from zordon_hub.shared.api.dependencies import get_comment_service, get_current_identity
from zordon_hub.shared.api.responses import ok
from zordon_hub.users.domain import Identity

router = APIRouter(tags=["Comments"])


@router.get("/tickets/{ticket_id}/comments", summary="Comments on a ticket, oldest first")
async def list_comments(
    ticket_id: str,
    identity: Identity = Depends(get_current_identity),
    service: CommentService = Depends(get_comment_service)
):
    return ok(await service.list_comments(identity, ticket_id))


@router.post(
    "/tickets/{ticket_id}/comments",
    status_code=status.HTTP_201_CREATED,
    summary="Post a comment"
)
async def create_comment(
    ticket_id: str,
    payload: CommentRequest,
    identity: Identity = Depends(get_current_identity),
    service: CommentService = Depends(get_comment_service)
):
    return ok(await service.create_comment(identity, ticket_id, payload.content), "Comment posted")


@router.patch("/comments/{comment_id}", summary="Edit own comment")
async def edit_comment(
    comment_id: str,
    payload: CommentRequest,
    identity: Identity = Depends(get_current_identity),
    service: CommentService = Depends(get_comment_service)
):
    return ok(await service.edit_comment(identity, comment_id, payload.content), "Comment updated")


@router.delete("/comments/{comment_id}", summary="Delete a comment")
async def delete_comment(
    comment_id: str,
    identity: Identity = Depends(get_current_identity),
    service: CommentService = Depends(get_comment_service)
):
    return ok(await service.delete_comment(identity, comment_id), "Comment deleted")
