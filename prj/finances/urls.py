"""
finances/urls.py
────────────────
URL patterns for the finances app (student + treasurer endpoints).
Include in the root urls.py with:
    path('', include('finances.urls')),
"""

from django.urls import path

from . import views

urlpatterns = [
    # Student endpoints
    path('api/summary/',      views.summary_json,        name='summary'),
    path('api/deadlines/',    views.deadlines_json,      name='deadlines'),
    path('api/achievements/', views.achievements_json,   name='achievements'),
    path('api/payments/',     views.submit_payment_view, name='submit_payment'),
    path('api/budget/',       views.budget_json,         name='budget'),

    # Treasurer endpoints
    path('treasurer/api/queue/',                                   views.review_queue_json,        name='review_queue'),
    path('treasurer/api/payments/<int:payment_id>/approve/',       views.approve_payment_view,     name='approve_payment'),
    path('treasurer/api/payments/<int:payment_id>/reject/',        views.reject_payment_view,      name='reject_payment'),
    path('treasurer/api/waivers/',                                 views.waive_payment_view,       name='waive_payment'),
    path('treasurer/api/expenses/',                                views.record_expense_view,      name='record_expense'),
    path('treasurer/api/expenses/<int:expense_id>/approve/',       views.approve_expense_view,     name='approve_expense'),
    path('treasurer/api/expenses/<int:expense_id>/reject/',        views.reject_expense_view,      name='reject_expense'),
    path('treasurer/api/expenses/<int:expense_id>/amend/',         views.amend_expense_view,       name='amend_expense'),
    path('treasurer/api/balances/',                                views.balances_json,            name='balances'),
    path('treasurer/api/balances/general/',                        views.source_balance_json,      name='general_fund_balance'),
    path('treasurer/api/balances/<int:source_id>/',                views.source_balance_json,      name='source_balance'),
    path('treasurer/api/threshold/',                               views.threshold_preview_json,   name='threshold_preview'),
    path('treasurer/api/obligations/<int:obligation_id>/progress/', views.obligation_progress_json, name='obligation_progress'),
]
