import platform
import os
import stat
import logging

logger = logging.getLogger(__name__)

if platform.system() == "Windows":
    try:
        import win32security
        import win32api
        import win32con
        WINDOWS_SECURITY_AVAILABLE = True
    except ImportError:
        logger.warning("pywin32 not fully installed, cannot set Windows file permissions securely.")
        WINDOWS_SECURITY_AVAILABLE = False
else:
    WINDOWS_SECURITY_AVAILABLE = False


def ensure_private_dir(path: str) -> str:
    """Create the vault directory (owner-only on POSIX) if it is missing."""
    if not os.path.isdir(path):
        os.makedirs(path, exist_ok=True)
        if platform.system() != 'Windows':
            os.chmod(path, stat.S_IRWXU)  # 700
        logger.debug(f"Created vault directory {path}")
    return path


def set_private_file_permissions(filepath: str) -> bool:
    """Set file to be readable/writable by owner only."""
    if platform.system() == 'Windows':
        return _set_windows_file_permissions(filepath)
    os.chmod(filepath, stat.S_IRUSR | stat.S_IWUSR)  # 600
    return True


def _set_windows_file_permissions(filepath: str) -> bool:
    """Replace the file's DACL with one granting read/write to the current user only."""
    if not WINDOWS_SECURITY_AVAILABLE:
        logger.warning(f"Skipping Windows file permission setting for {filepath}: pywin32 not available.")
        return False

    try:
        user_sid, _, _ = win32security.LookupAccountName(None, win32api.GetUserName())
        dacl = win32security.ACL()
        dacl.AddAccessAllowedAce(
            win32security.ACL_REVISION,
            win32con.GENERIC_READ | win32con.GENERIC_WRITE,
            user_sid
        )
        win32security.SetNamedSecurityInfo(
            filepath,
            win32security.SE_FILE_OBJECT,
            win32security.DACL_SECURITY_INFORMATION | win32security.PROTECTED_DACL_SECURITY_INFORMATION,
            None,
            None,
            dacl,
            None
        )
    except win32api.error as e:
        logger.error(f"Failed to set Windows file permissions for {filepath}: {e}")
        return False
    return True
