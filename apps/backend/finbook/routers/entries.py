"""Entries router exposing the entry handlers."""

from fastapi import APIRouter

from finbook.api.entries import handlers
from finbook.schemas import EntryOut, ReminderResult

router = APIRouter(prefix="/entries", tags=["entries"])

router.add_api_route(
    "",
    handlers.list_entries,
    methods=["GET"],
    response_model=list[EntryOut],
)

router.add_api_route(
    "",
    handlers.create_entry,
    methods=["POST"],
    response_model=EntryOut,
    status_code=201,
)

# Registered before "/{entry_id}" so the literal path wins.
router.add_api_route(
    "/export.csv",
    handlers.export_entries,
    methods=["GET"],
)

router.add_api_route(
    "/{entry_id}",
    handlers.get_entry,
    methods=["GET"],
    response_model=EntryOut,
)

router.add_api_route(
    "/{entry_id}",
    handlers.replace_entry,
    methods=["PUT"],
    response_model=EntryOut,
)

router.add_api_route(
    "/{entry_id}",
    handlers.patch_entry,
    methods=["PATCH"],
    response_model=EntryOut,
)

router.add_api_route(
    "/{entry_id}",
    handlers.delete_entry,
    methods=["DELETE"],
    status_code=204,
)

router.add_api_route(
    "/{entry_id}/complete",
    handlers.complete_entry,
    methods=["POST"],
    response_model=EntryOut,
)

router.add_api_route(
    "/{entry_id}/remind",
    handlers.send_reminder,
    methods=["POST"],
    response_model=ReminderResult,
)
