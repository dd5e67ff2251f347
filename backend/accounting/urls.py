from django.urls import path

from . import views

app_name = "accounting"

urlpatterns = [
    path("accounts/", views.AccountListCreateView.as_view(), name="account-list-create"),
    path("accounts/<int:pk>/", views.AccountDetailView.as_view(), name="account-detail"),

    path("journal-entries/", views.JournalEntryListCreateView.as_view(), name="journal-entry-list-create"),
    path("journal-entries/<int:pk>/", views.JournalEntryDetailView.as_view(), name="journal-entry-detail"),
    path("journal-entries/<int:pk>/submit/", views.JournalSubmitView.as_view(), name="journal-entry-submit"),
    path("journal-entries/<int:pk>/approve/", views.JournalApproveView.as_view(), name="journal-entry-approve"),
    path("journal-entries/<int:pk>/reject/", views.JournalRejectView.as_view(), name="journal-entry-reject"),
]
