from authentication.permissions import MANAGER_ROLES, STAFF_ROLES, user_role

from .quarters import get_active_quarter


def dashboard_context(request):
    """Active quarter and sidebar entries for the signed-in user"""
    user = getattr(request, 'user', None)
    role = user_role(user)
    if role is None or role == 'pending':
        return {'active_quarter': None, 'nav_items': []}

    nav_items = [('dashboard', 'Home')]
    if role in MANAGER_ROLES:
        nav_items.append(('user_list', 'Users'))
    if role in STAFF_ROLES:
        nav_items += [
            ('quarter_list', 'Quarters'),
            ('classroom_list', 'Classrooms'),
            ('student_list', 'Students'),
            ('attendance', 'Attendance'),
            ('grading', 'Grading'),
            ('reports', 'Reports'),
        ]

    return {
        'active_quarter': get_active_quarter(),
        'nav_items': nav_items,
        'current_role': role,
    }
