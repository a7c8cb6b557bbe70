import json

from fastapi import APIRouter, Depends, Query, Request

from taskboard.deps import get_caller
from taskboard.rpc.errors import ProcedureError
from taskboard.rpc.procedures import Caller
from taskboard.rpc.transformer import deserialize, serialize

router = APIRouter(prefix="/rpc", tags=["rpc"])


def _decode_input(raw: str | bytes | None):
    if not raw:
        return None
    try:
        return deserialize(json.loads(raw))
    except ValueError as e:
        # json.JSONDecodeError is a ValueError too
        raise ProcedureError("BAD_REQUEST", f"Malformed input: {e}") from e


async def _dispatch(caller: Caller, name: str, kind: str, raw_input):
    procedure = caller.procedures.get(name)
    if procedure.kind != kind:
        raise ProcedureError(
            "METHOD_NOT_SUPPORTED",
            f"Procedure '{name}' is a {procedure.kind}",
        )
    result = await caller.call(name, raw_input)
    return {"result": {"data": serialize(result)}}


@router.get("/{name}")
async def call_query(
    name: str,
    input: str | None = Query(default=None),
    caller: Caller = Depends(get_caller),
):
    """Run a query procedure; input is a JSON document in the query string"""
    return await _dispatch(caller, name, "query", _decode_input(input))


@router.post("/{name}")
async def call_mutation(
    name: str,
    request: Request,
    caller: Caller = Depends(get_caller),
):
    """Run a mutation procedure; input is the JSON request body"""
    return await _dispatch(caller, name, "mutation", _decode_input(await request.body()))
