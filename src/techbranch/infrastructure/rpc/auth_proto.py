"""Protobuf schema for techbranch.v1.AuthService, registered in the default pool.

The descriptors mirror ``proto/techbranch/v1/auth.proto``; field numbers
follow declaration order. Clients can generate stubs from that file.
"""

from __future__ import annotations

from google.protobuf import (
    descriptor_pb2,
    descriptor_pool,
    empty_pb2,
    message_factory,
    timestamp_pb2,
)
from google.protobuf.descriptor import Descriptor, FileDescriptor, ServiceDescriptor
from google.protobuf.message import Message

PACKAGE = "techbranch.v1"
PROTO_FILE_NAME = "techbranch/v1/auth.proto"

_Field = descriptor_pb2.FieldDescriptorProto
_STRING = _Field.TYPE_STRING
_INT64 = _Field.TYPE_INT64
_TIMESTAMP = f".{timestamp_pb2.Timestamp.DESCRIPTOR.full_name}"
_EMPTY = f".{empty_pb2.Empty.DESCRIPTOR.full_name}"

# Field type is a scalar TYPE_* value or a fully-qualified message name.
_MESSAGES: dict[str, tuple[tuple[str, int | str], ...]] = {
    "User": (
        ("id", _INT64),
        ("display_name", _STRING),
        ("email", _STRING),
        ("created_at", _TIMESTAMP),
        ("updated_at", _TIMESTAMP),
    ),
    "SignupRequest": (("display_name", _STRING), ("email", _STRING), ("password", _STRING)),
    "SignupResponse": (("user", f".{PACKAGE}.User"),),
    "SigninRequest": (("email", _STRING), ("password", _STRING)),
    "SigninResponse": (
        ("access_token", _STRING),
        ("refresh_token", _STRING),
        ("token_type", _STRING),
        ("expires_in", _INT64),
        ("refresh_expires_in", _INT64),
    ),
    "RefreshTokenRequest": (("refresh_token", _STRING),),
    "RefreshTokenResponse": (
        ("access_token", _STRING),
        ("token_type", _STRING),
        ("expires_in", _INT64),
    ),
    "GetSigninUserResponse": (("user", f".{PACKAGE}.User"),),
    "GetGoogleLoginURLResponse": (("url", _STRING),),
    "GoogleLoginCallbackRequest": (("state", _STRING), ("code", _STRING)),
}

_AUTH_METHODS: tuple[tuple[str, str, str], ...] = (
    ("Signup", "SignupRequest", "SignupResponse"),
    ("Signin", "SigninRequest", "SigninResponse"),
    ("Signout", _EMPTY, _EMPTY),
    ("RefreshToken", "RefreshTokenRequest", "RefreshTokenResponse"),
    ("GetSigninUser", _EMPTY, "GetSigninUserResponse"),
    ("GetGoogleLoginURL", _EMPTY, "GetGoogleLoginURLResponse"),
    ("GoogleLoginCallback", "GoogleLoginCallbackRequest", "SigninResponse"),
)


def _qualify(type_name: str) -> str:
    return type_name if type_name.startswith(".") else f".{PACKAGE}.{type_name}"


def build_file_descriptor_proto() -> descriptor_pb2.FileDescriptorProto:
    """Build the FileDescriptorProto equivalent of ``auth.proto``."""

    file_proto = descriptor_pb2.FileDescriptorProto(
        name=PROTO_FILE_NAME,
        package=PACKAGE,
        syntax="proto3",
        dependency=[empty_pb2.DESCRIPTOR.name, timestamp_pb2.DESCRIPTOR.name],
    )
    for message_name, fields in _MESSAGES.items():
        message = file_proto.message_type.add(name=message_name)
        for number, (field_name, field_type) in enumerate(fields, start=1):
            field = message.field.add(
                name=field_name,
                number=number,
                label=_Field.LABEL_OPTIONAL,
            )
            if isinstance(field_type, str):
                field.type = _Field.TYPE_MESSAGE
                field.type_name = field_type
            else:
                field.type = field_type

    service = file_proto.service.add(name="AuthService")
    for method_name, input_type, output_type in _AUTH_METHODS:
        service.method.add(
            name=method_name,
            input_type=_qualify(input_type),
            output_type=_qualify(output_type),
        )
    return file_proto


FILE_DESCRIPTOR: FileDescriptor = descriptor_pool.Default().AddSerializedFile(
    build_file_descriptor_proto().SerializeToString()
)
AUTH_SERVICE_DESCRIPTOR: ServiceDescriptor = FILE_DESCRIPTOR.services_by_name["AuthService"]


def message_class(descriptor: Descriptor) -> type[Message]:
    """Return the concrete message class for one descriptor."""

    return message_factory.GetMessageClass(descriptor)


def _message(name: str) -> type[Message]:
    return message_class(FILE_DESCRIPTOR.message_types_by_name[name])


User = _message("User")
SignupRequest = _message("SignupRequest")
SignupResponse = _message("SignupResponse")
SigninRequest = _message("SigninRequest")
SigninResponse = _message("SigninResponse")
RefreshTokenRequest = _message("RefreshTokenRequest")
RefreshTokenResponse = _message("RefreshTokenResponse")
GetSigninUserResponse = _message("GetSigninUserResponse")
GetGoogleLoginURLResponse = _message("GetGoogleLoginURLResponse")
GoogleLoginCallbackRequest = _message("GoogleLoginCallbackRequest")
Empty = empty_pb2.Empty
