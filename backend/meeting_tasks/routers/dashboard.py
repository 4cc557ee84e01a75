from fastapi import APIRouter, Depends, HTTPException, Response, status

from meeting_tasks.deps import not_signed_in, require_shell
from meeting_tasks.schemas.auth import IdentityRead
from meeting_tasks.schemas.dashboard import DashboardView, FormRead, FormUpdate, NotificationRead
from meeting_tasks.services.shell import SessionShell

router = APIRouter(prefix="/v1/dashboard", tags=["dashboard"])


def _view(shell: SessionShell) -> DashboardView:
    # the session may have signed out while a save or submit was awaiting
    if shell.identity is None:
        raise not_signed_in()
    workflow = shell.workflow
    return DashboardView(
        identity=IdentityRead.model_validate(shell.identity),
        state=workflow.state.value,
        saving=workflow.saving,
        form=FormRead.model_validate(workflow.form),
        tasks=list(shell.tasks),
        notifications=[NotificationRead.model_validate(n) for n in shell.notifications],
    )


@router.get("", response_model=DashboardView)
async def get_dashboard(shell: SessionShell = Depends(require_shell)):
    return _view(shell)


@router.patch("/form", response_model=DashboardView)
async def update_form(payload: FormUpdate, shell: SessionShell = Depends(require_shell)):
    shell.workflow.update_form(**payload.model_dump(exclude_unset=True))
    return _view(shell)


@router.post("/profile", response_model=DashboardView)
async def save_profile(shell: SessionShell = Depends(require_shell)):
    await shell.workflow.save_profile()
    return _view(shell)


@router.post("/submit", response_model=DashboardView)
async def submit_transcript(shell: SessionShell = Depends(require_shell)):
    await shell.workflow.submit()
    return _view(shell)


@router.delete("/notifications/{notification_id}", status_code=status.HTTP_204_NO_CONTENT)
async def dismiss_notification(notification_id: str, shell: SessionShell = Depends(require_shell)):
    if not shell.dismiss(notification_id):
        raise HTTPException(status_code=404, detail="Notification not found")
    return Response(status_code=status.HTTP_204_NO_CONTENT)
