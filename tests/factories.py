"""Builders for records used across the test suite."""

from opstracker.models import (
    Group, MitreSubTechnique, MitreTactic, MitreTechnique, Operation,
    OperationVisibility, Target, Tool, User, UserRole,
)


def build_user(db, id="user-1", name="User", role=UserRole.OPERATOR, groups=()):
    user = User(id=id, name=name, email=f"{id}@example.com", role=role)
    user.groups = list(groups)
    db.add(user)
    db.commit()
    return user


def build_group(db, id="group-1", name="Group"):
    group = Group(id=id, name=name)
    db.add(group)
    db.commit()
    return group


def build_operation(db, name="Operation", visibility=OperationVisibility.EVERYONE, groups=()):
    operation = Operation(name=name, visibility=visibility)
    operation.access_groups = list(groups)
    db.add(operation)
    db.commit()
    return operation


def build_tool(db, id="tool-1", name="Tool", description=None):
    tool = Tool(id=id, name=name, description=description)
    db.add(tool)
    db.commit()
    return tool


def build_target(db, id="target-1", name="Target", description=None, is_crown_jewel=False):
    target = Target(id=id, name=name, description=description, is_crown_jewel=is_crown_jewel)
    db.add(target)
    db.commit()
    return target


def build_mitre_taxonomy(db):
    """Two techniques, each with one sub-technique."""
    db.add(MitreTactic(id="TA0001", name="Initial Access"))
    db.add(MitreTactic(id="TA0002", name="Execution"))
    db.add(MitreTechnique(id="T1566", name="Phishing", tactic_id="TA0001"))
    db.add(MitreTechnique(id="T1059", name="Command and Scripting Interpreter", tactic_id="TA0002"))
    db.flush()
    db.add(MitreSubTechnique(id="T1566.001", name="Spearphishing Attachment", technique_id="T1566"))
    db.add(MitreSubTechnique(id="T1059.001", name="PowerShell", technique_id="T1059"))
    db.commit()


def auth(user):
    """Request headers identifying ``user`` (a User or a user id)."""
    return {"X-User-Id": getattr(user, "id", user)}
