"""Serialization schemas for content and license records using Marshmallow.

The encryption key of a content record is never part of the encoded form.
"""

from marshmallow import Schema, fields


class ContentSchema(Schema):
    """External representation of a content record."""

    id = fields.Str(required=True)
    location = fields.Str()
    length = fields.Int(allow_none=True)
    sha256 = fields.Str(allow_none=True)
    type = fields.Str()


class UserInfoSchema(Schema):
    id = fields.Str()


class UserRightsSchema(Schema):
    print = fields.Int(allow_none=True)
    copy = fields.Int(allow_none=True)
    start = fields.DateTime(allow_none=True)
    end = fields.DateTime(allow_none=True)


class LicenseReportSchema(Schema):
    """External representation of a license row."""

    id = fields.Str(required=True)
    provider = fields.Str()
    issued = fields.DateTime()
    updated = fields.DateTime(allow_none=True)
    user = fields.Nested(UserInfoSchema)
    rights = fields.Nested(UserRightsSchema)
    content_id = fields.Str()
    lsd_status = fields.Int()


content_schema = ContentSchema()
contents_schema = ContentSchema(many=True)
license_report_schema = LicenseReportSchema()
license_reports_schema = LicenseReportSchema(many=True)
