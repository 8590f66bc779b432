"""Well-known permission and role names."""

# Superuser bypass: holding this unscoped grants every permission check.
FULL_ADMIN_ACCESS = "full_admin_access"

ACCESS_ADMIN_PANEL = "access_admin_panel"
ACCESS_MEMBER_AREA = "access_member_area"
MANAGE_USERS = "manage_users"
MANAGE_ROLES = "manage_roles"
MANAGE_PERMISSIONS = "manage_permissions"

ADMINISTRATORS_ROLE = "Administrators"
MEMBERS_ROLE = "Members"

SYSTEM_PERMISSIONS = {
    ACCESS_ADMIN_PANEL: "Access Admin Panel",
    MANAGE_USERS: "Manage Users",
    MANAGE_ROLES: "Manage Roles",
    MANAGE_PERMISSIONS: "Manage Permissions",
    ACCESS_MEMBER_AREA: "Access Member Area",
    FULL_ADMIN_ACCESS: "Full Admin Access",
}
