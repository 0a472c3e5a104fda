import pytest
from botocore.exceptions import ClientError, WaiterError

from drdump.errors import ProviderError
from drdump.services.stack import StackUpdater


class DummyLogger:
    def debug(self, *_args, **_kwargs):
        return None

    def info(self, *_args, **_kwargs):
        return None

    def warning(self, *_args, **_kwargs):
        return None


class FakeWaiter:
    def __init__(self, name, client):
        self.name = name
        self.client = client

    def wait(self, **kwargs):
        self.client.calls.append(("wait", self.name))
        if self.name in self.client.failing_waiters:
            raise WaiterError(self.name, "Waiter encountered a terminal failure state", {})


class FakeCfn:
    def __init__(self, status=None, update_error=None, failing_waiters=()):
        self.status = status
        self.update_error = update_error
        self.failing_waiters = set(failing_waiters)
        self.calls = []

    def describe_stacks(self, StackName):
        if self.status is None:
            raise ClientError(
                {"Error": {"Code": "ValidationError", "Message": f"Stack with id {StackName} does not exist"}},
                "DescribeStacks",
            )
        return {"Stacks": [{"StackName": StackName, "StackStatus": self.status}]}

    def create_stack(self, **kwargs):
        self.calls.append(("create_stack", kwargs["StackName"]))

    def update_stack(self, **kwargs):
        self.calls.append(("update_stack", kwargs["StackName"]))
        if self.update_error is not None:
            raise self.update_error

    def delete_stack(self, **kwargs):
        self.calls.append(("delete_stack", kwargs["StackName"]))

    def get_waiter(self, name):
        return FakeWaiter(name, self)


def _updater(cfn):
    return StackUpdater(cfn, "Common-Bucket", DummyLogger(), waiter_delay=0, waiter_max_attempts=1)


def test_status_is_none_for_missing_stack():
    assert _updater(FakeCfn()).status() is None


@pytest.mark.parametrize(
    "status, valid",
    [
        ("CREATE_COMPLETE", True),
        ("UPDATE_COMPLETE", True),
        ("ROLLBACK_COMPLETE", False),
        ("CREATE_IN_PROGRESS", False),
        (None, False),
    ],
)
def test_is_valid_reflects_status(status, valid):
    assert _updater(FakeCfn(status)).is_valid() is valid


def test_update_creates_missing_stack_and_waits():
    cfn = FakeCfn()

    _updater(cfn).update("{}")

    assert cfn.calls == [("create_stack", "Common-Bucket"), ("wait", "stack_create_complete")]


def test_update_recreates_rolled_back_stack():
    cfn = FakeCfn("ROLLBACK_COMPLETE")

    _updater(cfn).update("{}")

    assert cfn.calls == [
        ("delete_stack", "Common-Bucket"),
        ("wait", "stack_delete_complete"),
        ("create_stack", "Common-Bucket"),
        ("wait", "stack_create_complete"),
    ]


def test_update_updates_existing_stack():
    cfn = FakeCfn("UPDATE_ROLLBACK_COMPLETE")

    _updater(cfn).update("{}")

    assert cfn.calls == [("update_stack", "Common-Bucket"), ("wait", "stack_update_complete")]


def test_update_treats_no_changes_as_success():
    error = ClientError(
        {"Error": {"Code": "ValidationError", "Message": "No updates are to be performed."}},
        "UpdateStack",
    )
    cfn = FakeCfn("CREATE_COMPLETE", update_error=error)

    _updater(cfn).update("{}")

    assert cfn.calls == [("update_stack", "Common-Bucket")]


def test_update_refuses_stack_in_progress():
    cfn = FakeCfn("UPDATE_IN_PROGRESS")

    with pytest.raises(ProviderError, match="UPDATE_IN_PROGRESS"):
        _updater(cfn).update("{}")

    assert cfn.calls == []


def test_update_reports_stack_that_never_settles():
    cfn = FakeCfn(failing_waiters={"stack_create_complete"})

    with pytest.raises(ProviderError, match=r"Stack \[Common-Bucket\] did not reach a stable state"):
        _updater(cfn).update("{}")


def test_update_wraps_rejected_submission():
    error = ClientError({"Error": {"Code": "InsufficientCapabilities", "Message": "needs IAM"}}, "UpdateStack")
    cfn = FakeCfn("CREATE_COMPLETE", update_error=error)

    with pytest.raises(ProviderError, match="submission was rejected"):
        _updater(cfn).update("{}")
