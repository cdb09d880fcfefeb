class ShaderPackError(Exception):
    """Base class for shaderpack-specific errors."""


# Load/verify related
class ArchiveCorruptError(ShaderPackError):
    pass


class ArchiveTooShort(ArchiveCorruptError):
    pass


class DigestMismatch(ArchiveCorruptError):
    pass


class MemberFrameError(ArchiveCorruptError):
    def __init__(self, member_index: int, message: str = ""):
        self.member_index = member_index
        super().__init__(message or f"error at archive member {member_index}")


# Assembly/digest limits
class MemberSizeError(ShaderPackError):
    pass


class DigestInputTooLarge(ShaderPackError):
    pass
