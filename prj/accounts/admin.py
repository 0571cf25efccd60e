"""
accounts/admin.py
─────────────────
Admin registration for CustomUser.
"""

from django.contrib import admin
from django.contrib.auth.admin import UserAdmin as BaseUserAdmin

from .models import CustomUser


@admin.register(CustomUser)
class CustomUserAdmin(BaseUserAdmin):
    """
    Extends the default UserAdmin to surface the dues role, cohort level and
    the hide_fund_balance preference.
    """

    list_display  = BaseUserAdmin.list_display + ('role', 'level')
    list_filter   = BaseUserAdmin.list_filter  + ('role', 'level')
    search_fields = BaseUserAdmin.search_fields + ('reg_number',)

    fieldsets = BaseUserAdmin.fieldsets + (
        ('Class Dues', {'fields': ('role', 'reg_number', 'level', 'hide_fund_balance')}),
    )
    add_fieldsets = BaseUserAdmin.add_fieldsets + (
        ('Class Dues', {'fields': ('role', 'reg_number', 'level')}),
    )
