import pytest
from botocore.exceptions import ClientError, EndpointConnectionError

from drdump.errors import MissingRoleError, StageError
from drdump.models import FunctionStatus, ProvisioningTarget, ProvisionStep, Settings
from drdump.services.provisioner import EnvironmentProvisioner


class DummyLogger:
    def debug(self, *_args, **_kwargs):
        return None

    def info(self, *_args, **_kwargs):
        return None

    def warning(self, *_args, **_kwargs):
        return None


class DummyConsole:
    def print(self, *_args, **_kwargs):
        return None


class FakeProber:
    def __init__(self, status):
        self.status = status
        self.calls = 0

    def probe(self, function_name):
        self.calls += 1
        return self.status


class FakeWaiter:
    def __init__(self, name, log):
        self.name = name
        self.log = log

    def wait(self, **kwargs):
        self.log.append(("wait", self.name))


class FakeCfn:
    def __init__(self, status=None):
        self.status = status
        self.calls = []

    def describe_stacks(self, StackName):
        if self.status is None:
            raise ClientError(
                {"Error": {"Code": "ValidationError", "Message": f"Stack with id {StackName} does not exist"}},
                "DescribeStacks",
            )
        return {"Stacks": [{"StackName": StackName, "StackStatus": self.status}]}

    def create_stack(self, **kwargs):
        self.calls.append(("create_stack", kwargs))

    def update_stack(self, **kwargs):
        self.calls.append(("update_stack", kwargs))

    def delete_stack(self, **kwargs):
        self.calls.append(("delete_stack", kwargs))

    def get_waiter(self, name):
        return FakeWaiter(name, self.calls)


class FakePaginator:
    def __init__(self, pages):
        self.pages = pages
        self.served = 0

    def paginate(self):
        for page in self.pages:
            self.served += 1
            yield page


class FakeIam:
    def __init__(self, pages):
        self.paginator = FakePaginator(pages)

    def get_paginator(self, name):
        assert name == "list_roles"
        return self.paginator


class FakeLambda:
    def __init__(self):
        self.calls = []

    def create_function(self, **kwargs):
        self.calls.append(("create_function", kwargs))

    def update_function_configuration(self, **kwargs):
        self.calls.append(("update_function_configuration", kwargs))

    def get_waiter(self, name):
        return FakeWaiter(name, self.calls)


class FakeStorage:
    def __init__(self, name):
        self.name = name
        self.reads = []
        self.copies = []

    def read_text(self, bucket, key):
        self.reads.append((bucket, key))
        return '{"Resources": {}}'

    def copy_to(self, target, source_bucket, target_bucket, key):
        self.copies.append((target.name, source_bucket, target_bucket, key))


class FakeParameters:
    def __init__(self, bucket):
        self.bucket = bucket

    def get_parameter(self, name):
        return self.bucket


def _role(name):
    return {"RoleName": name, "Arn": f"arn:aws:iam::111122223333:role/{name}"}


ROLE_PAGES = [
    {"Roles": [_role("AdminRole"), _role("Other")], "Marker": "m1"},
    {"Roles": [_role("Reader"), _role("DRPortal-DbDump-MySql-Lambda-ABC123")], "Marker": "m2"},
    {"Roles": [_role("DRPortal-DbDump-MySql-Lambda-ZZZ")]},
]


def _target():
    return ProvisioningTarget(
        region="eu-west-1",
        project_id="p1",
        subnet_ids=("subnet-1", "subnet-2"),
        security_group_ids=("sg-1",),
    )


def _provisioner(status=FunctionStatus.ABSENT, stack_status=None, pages=None):
    return EnvironmentProvisioner(
        logger=DummyLogger(),
        console=DummyConsole(),
        settings=Settings(),
        prober=FakeProber(status),
        cfn_client=FakeCfn(stack_status),
        iam_client=FakeIam(ROLE_PAGES if pages is None else pages),
        lambda_client=FakeLambda(),
        storage=FakeStorage("local"),
        source_storage=FakeStorage("source"),
        parameters=FakeParameters("local-bucket"),
        source_parameters=FakeParameters("source-bucket"),
    )


def _names(calls):
    return [call[0] for call in calls]


def test_prepare_provisions_stack_function_and_network_in_order():
    provisioner = _provisioner()

    provisioner.prepare(_target())

    assert _names(provisioner.cfn.calls) == ["create_stack", "wait"]
    assert provisioner.cfn.calls[1] == ("wait", "stack_create_complete")
    assert provisioner.storage.reads == [("local-bucket", "cloudformation/common-bucket.json")]
    assert provisioner.storage.copies == [
        ("source", "local-bucket", "source-bucket", "lambda/drdump-mysql.zip")
    ]

    lambda_calls = provisioner.lambda_client.calls
    assert _names(lambda_calls) == ["create_function", "wait", "update_function_configuration", "wait"]
    create = lambda_calls[0][1]
    assert create["Role"] == "arn:aws:iam::111122223333:role/DRPortal-DbDump-MySql-Lambda-ABC123"
    assert create["MemorySize"] == 1024
    assert create["Timeout"] == 600
    assert create["Code"] == {"S3Bucket": "source-bucket", "S3Key": "lambda/drdump-mysql.zip"}
    assert lambda_calls[2][1]["VpcConfig"] == {
        "SubnetIds": ["subnet-1", "subnet-2"],
        "SecurityGroupIds": ["sg-1"],
    }


def test_prepare_only_configures_network_when_everything_exists():
    provisioner = _provisioner(status=FunctionStatus.PRESENT, stack_status="CREATE_COMPLETE")

    provisioner.prepare(_target())

    assert provisioner.cfn.calls == []
    assert provisioner.storage.reads == []
    assert provisioner.storage.copies == []
    assert provisioner.iam.paginator.served == 0
    assert _names(provisioner.lambda_client.calls) == ["update_function_configuration", "wait"]


def test_prepare_twice_with_existing_function_never_creates_it():
    provisioner = _provisioner(status=FunctionStatus.PRESENT, stack_status="UPDATE_COMPLETE")

    provisioner.prepare(_target())
    provisioner.prepare(_target())

    assert "create_function" not in _names(provisioner.lambda_client.calls)
    assert _names(provisioner.lambda_client.calls).count("update_function_configuration") == 2
    assert provisioner.prober.calls == 2


def test_role_discovery_stops_at_page_with_first_match():
    provisioner = _provisioner()

    arn = provisioner.find_role_arn("DRPortal-DbDump-MySql-Lambda")

    assert arn.endswith("DRPortal-DbDump-MySql-Lambda-ABC123")
    assert provisioner.iam.paginator.served == 2


def test_role_discovery_fails_when_no_page_matches():
    provisioner = _provisioner(pages=[{"Roles": [_role("AdminRole")], "Marker": "m1"}, {"Roles": []}])

    with pytest.raises(MissingRoleError, match="DRPortal-DbDump-MySql-Lambda"):
        provisioner.find_role_arn("DRPortal-DbDump-MySql-Lambda")

    assert provisioner.iam.paginator.served == 2


def test_prepare_wraps_missing_role_with_function_step():
    provisioner = _provisioner(stack_status="CREATE_COMPLETE", pages=[{"Roles": [_role("AdminRole")]}])

    with pytest.raises(StageError) as error:
        provisioner.prepare(_target())

    assert error.value.stage is ProvisionStep.FUNCTION
    assert isinstance(error.value.cause, MissingRoleError)
    assert provisioner.storage.copies == []
    assert provisioner.lambda_client.calls == []


def test_prepare_wraps_connection_failures_with_step():
    class UnreachableIam:
        def get_paginator(self, name):
            raise EndpointConnectionError(endpoint_url="https://iam.amazonaws.com/")

    provisioner = _provisioner(stack_status="CREATE_COMPLETE")
    provisioner.iam = UnreachableIam()

    with pytest.raises(StageError) as error:
        provisioner.prepare(_target())

    assert error.value.stage is ProvisionStep.FUNCTION
    assert isinstance(error.value.cause, EndpointConnectionError)
