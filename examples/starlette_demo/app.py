from starlette.applications import Starlette
from starlette.responses import JSONResponse
from starlette.routing import Route

from acltree import Acl
from acltree.adapters.starlette import require_access

acl = Acl()
acl.add_role("anonymous").add_role("staff", "anonymous")
acl.add_resource("reports")
acl.allow("anonymous", "reports", "list")
acl.allow("staff", "reports")


def build_request(request):
    privilege = "list" if request.method == "GET" else "create"
    return request.headers.get("x-role", "anonymous"), "reports", privilege


guard = require_access(acl, build_request, add_headers=True)


@guard
async def reports(request):
    return JSONResponse({"reports": []})


app = Starlette(routes=[Route("/reports", reports, methods=["GET", "POST"])])
