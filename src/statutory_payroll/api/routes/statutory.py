"""Statutory movements file endpoint."""

from fastapi import APIRouter
from fastapi.responses import Response

from statutory_payroll.api.schemas import ErrorResponse, MovementsFileRequest
from statutory_payroll.statutory.encoder import StatutoryFileEncoder

router = APIRouter(prefix="/statutory", tags=["statutory"])


@router.post(
    "/movements-file",
    response_class=Response,
    responses={200: {"content": {"text/plain": {}}}, 422: {"model": ErrorResponse}},
)
async def movements_file(payload: MovementsFileRequest) -> Response:
    """Encode movements into the fixed-width file (CRLF, ASCII)."""
    encoded = StatutoryFileEncoder().encode(
        payload.company.to_domain(),
        [record.to_domain() for record in payload.records],
        payload.file_date,
    )
    return Response(
        content=encoded.to_bytes(),
        media_type="text/plain; charset=ascii",
        headers={
            "X-Detail-Count": str(encoded.detail_count),
            "X-Skipped-Count": str(len(encoded.skipped)),
            "X-Overflow-Count": str(len(encoded.overflows)),
        },
    )
